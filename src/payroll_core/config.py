"""Configuration management for the payroll core."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class PolicyVersions:
    """Versions of every computation rule that a locked run must record."""

    tax_table: str = "TRAIN-2023"
    sss: str = "SSS-2025"
    philhealth: str = "PHIC-2025"
    pagibig: str = "HDMF-2025"
    holiday_list: str = "PH-HOLIDAYS-2025"
    formula: str = "1.0"
    rule_set: str = "1.0"


@dataclass(frozen=True)
class PaySchedule:
    """Pay schedule used at issuance time.

    deduct_gov_from controls where semi-monthly government deductions land:
    ``first`` or ``second`` cutoff only, or ``both`` (split 50/50).
    """

    default_frequency: str = "semi_monthly"
    semi_monthly_first_cutoff: int = 15
    deduct_gov_from: str = "first"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    engine_version: str
    host: str
    port: int
    debug: bool
    log_level: str
    policy_versions: PolicyVersions
    pay_schedule: PaySchedule

    @property
    def HOST(self) -> str:
        """Alias for host."""
        return self.host

    @property
    def PORT(self) -> int:
        """Alias for port."""
        return self.port

    @property
    def DEBUG(self) -> bool:
        """Alias for debug."""
        return self.debug

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        defaults = PolicyVersions()
        policy_versions = PolicyVersions(
            tax_table=os.getenv("POLICY_TAX_TABLE_VERSION", defaults.tax_table),
            sss=os.getenv("POLICY_SSS_VERSION", defaults.sss),
            philhealth=os.getenv("POLICY_PHILHEALTH_VERSION", defaults.philhealth),
            pagibig=os.getenv("POLICY_PAGIBIG_VERSION", defaults.pagibig),
            holiday_list=os.getenv("POLICY_HOLIDAY_LIST_VERSION", defaults.holiday_list),
            formula=os.getenv("POLICY_FORMULA_VERSION", defaults.formula),
            rule_set=os.getenv("POLICY_RULE_SET_VERSION", defaults.rule_set),
        )

        pay_schedule = PaySchedule(
            default_frequency=os.getenv("PAY_DEFAULT_FREQUENCY", "semi_monthly"),
            semi_monthly_first_cutoff=int(os.getenv("PAY_FIRST_CUTOFF_DAY", "15")),
            deduct_gov_from=os.getenv("PAY_DEDUCT_GOV_FROM", "first"),
        )

        return cls(
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            policy_versions=policy_versions,
            pay_schedule=pay_schedule,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the service entry point."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
