"""
Service Configuration
=====================
Dataclass configuration loaded from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .errors import ConfigurationError
from .rate_limit.models import RateLimitRule, DEFAULT_RATE_LIMITS, parse_rate_limits


@dataclass
class TwilioConfig:
    """Credentials for the Twilio WhatsApp sender."""
    account_sid: str
    auth_token: str
    whatsapp_number: str
    base_url: str = "https://api.twilio.com/2010-04-01"


@dataclass
class SupabaseConfig:
    """Connection settings for the Supabase (PostgREST) data store."""
    url: str
    service_key: str


@dataclass
class TemplateIds:
    """Content template SIDs for each outbound message kind."""
    otp: str = "HX4f5f36cf2e136b35474c99890e2fc612"
    reminder: str = ""
    confirmation: str = "HX833cc8141398f0a037c21e061404bba0"
    update: str = "HXfb6f60eb9acb068d3100d204e8d866b9"
    waiting_list: str = "HXd75dea9bfaea32988c7532ecc6969b34"
    broadcast: str = "HXd94763214416ec4100848e81162aad92"


@dataclass
class ServiceConfig:
    """Top-level configuration for the notification core."""
    service_name: str = "linedup-notify"
    timezone: str = "Asia/Jerusalem"
    country_code: str = "972"
    request_timeout: float = 15.0

    # OTP
    otp_length: int = 6
    otp_expiry_seconds: int = 600  # 10 minutes
    otp_max_attempts: int = 5
    ticket_ttl_seconds: int = 600

    # Reminders
    morning_trigger_hour: int = 8
    evening_trigger_hour: int = 18
    include_early_morning: bool = True

    # Recurring appointments
    extender_warmup_seconds: float = 60.0
    extender_interval_seconds: float = 3600.0
    fallback_window_days: int = 90

    # Rate limiting
    rate_limits: Dict[str, RateLimitRule] = field(
        default_factory=lambda: dict(DEFAULT_RATE_LIMITS)
    )
    rate_limit_sweep_seconds: float = 300.0

    redis_url: Optional[str] = None
    log_level: str = "INFO"
    log_json: bool = True

    templates: TemplateIds = field(default_factory=TemplateIds)
    twilio: Optional[TwilioConfig] = None
    supabase: Optional[SupabaseConfig] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            ServiceConfig

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        env = os.environ if environ is None else environ
        defaults = TemplateIds()

        templates = TemplateIds(
            otp=env.get("TWILIO_OTP_TEMPLATE_SID", defaults.otp),
            reminder=env.get("TWILIO_TEMPLATE_SID", defaults.reminder),
            confirmation=env.get("TWILIO_CONFIRMATION_TEMPLATE_SID", defaults.confirmation),
            update=env.get("TWILIO_UPDATE_TEMPLATE_SID", defaults.update),
            waiting_list=env.get("TWILIO_WAITING_LIST_TEMPLATE_SID", defaults.waiting_list),
            broadcast=env.get("TWILIO_BROADCAST_TEMPLATE_SID", defaults.broadcast),
        )

        twilio = None
        if env.get("TWILIO_ACCOUNT_SID"):
            twilio = TwilioConfig(
                account_sid=env["TWILIO_ACCOUNT_SID"],
                auth_token=env.get("TWILIO_AUTH_TOKEN", ""),
                whatsapp_number=env.get("TWILIO_WHATSAPP_NUMBER", ""),
            )

        supabase = None
        if env.get("SUPABASE_URL"):
            supabase = SupabaseConfig(
                url=env["SUPABASE_URL"],
                service_key=env.get("SUPABASE_SERVICE_KEY", ""),
            )

        rate_limits = dict(DEFAULT_RATE_LIMITS)
        if env.get("RATE_LIMITS"):
            rate_limits.update(parse_rate_limits(env["RATE_LIMITS"]))

        try:
            return cls(
                service_name=env.get("SERVICE_NAME", cls.service_name),
                timezone=env.get("TZ_NAME", cls.timezone),
                country_code=env.get("PHONE_COUNTRY_CODE", cls.country_code),
                request_timeout=float(env.get("REQUEST_TIMEOUT", cls.request_timeout)),
                otp_expiry_seconds=int(env.get("OTP_EXPIRY_SECONDS", cls.otp_expiry_seconds)),
                otp_max_attempts=int(env.get("OTP_MAX_ATTEMPTS", cls.otp_max_attempts)),
                ticket_ttl_seconds=int(env.get("VERIFIED_TICKET_TTL_SECONDS", cls.ticket_ttl_seconds)),
                include_early_morning=_env_bool(env, "REMINDER_INCLUDE_EARLY_MORNING", True),
                extender_warmup_seconds=float(env.get("EXTENDER_WARMUP_SECONDS", cls.extender_warmup_seconds)),
                extender_interval_seconds=float(env.get("EXTENDER_INTERVAL_SECONDS", cls.extender_interval_seconds)),
                fallback_window_days=int(env.get("FALLBACK_WINDOW_DAYS", cls.fallback_window_days)),
                rate_limits=rate_limits,
                redis_url=env.get("REDIS_URL") or None,
                log_level=env.get("LOG_LEVEL", cls.log_level),
                log_json=_env_bool(env, "LOG_JSON", True),
                templates=templates,
                twilio=twilio,
                supabase=supabase,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")
