"""Timezone-aware clock shared by repositories and services."""

from datetime import datetime

import pytz

from helpdesk.config import get_settings


def get_current_datetime() -> datetime:
    """Current instant in the configured timezone."""
    return datetime.now(pytz.timezone(get_settings().TIMEZONE))
