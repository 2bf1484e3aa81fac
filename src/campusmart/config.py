"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

DEFAULT_ADMIN_DOMAIN = "@vit.ac.in"


class LostReportPolicy(str, Enum):
    """Who may create lost-and-found reports."""

    ADMIN_ONLY = "admin"
    ANY_ACCOUNT = "any"


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        admin_email_domain: Accounts whose email ends with this suffix are
            created with the ADMIN role
        lost_report_policy: Who may create lost-and-found reports
        blob_dir: Root directory of the local blob store
    """

    admin_email_domain: str = DEFAULT_ADMIN_DOMAIN
    lost_report_policy: LostReportPolicy = LostReportPolicy.ADMIN_ONLY
    blob_dir: Optional[str] = None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from CAMPUSMART_* environment variables.

    Raises:
        ValueError: If CAMPUSMART_LOST_REPORT_POLICY is not 'admin' or 'any'
    """
    if environ is None:
        environ = os.environ

    policy_value = environ.get("CAMPUSMART_LOST_REPORT_POLICY", LostReportPolicy.ADMIN_ONLY.value)
    try:
        policy = LostReportPolicy(policy_value.strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown lost report policy: '{policy_value}'. Supported policies: admin, any"
        ) from None

    return Settings(
        admin_email_domain=environ.get("CAMPUSMART_ADMIN_DOMAIN", DEFAULT_ADMIN_DOMAIN),
        lost_report_policy=policy,
        blob_dir=environ.get("CAMPUSMART_BLOB_DIR"),
    )
