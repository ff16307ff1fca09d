# File: const.py
"""Constants for the Earned Access integration.

This file centralizes configuration keys, defaults, plan tiers, reward
multipliers, event names, service names and translation keys so the engines,
the session coordinator and the Home Assistant layer agree on one vocabulary.

The module is imported by the pure engines, so it must not import from
`homeassistant` at module level.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
# Integration Name
EARNED_ACCESS_TITLE = "Earned Access"

# Integration Domain
DOMAIN = "earned_access"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms (string values of homeassistant.const.Platform)
PLATFORMS = ["sensor"]

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"

# Storage and Versioning
STORE = "store"
STORAGE_KEY = "earned_access_data"
STORAGE_VERSION = 1
STORAGE_SAVE_DELAY_SECONDS = 1
SCHEMA_VERSION_LEDGER = 1

# Monitor
MONITOR = "monitor"

# ------------------------------------------------------------------------------------------------
# Access States
# ------------------------------------------------------------------------------------------------
ACCESS_STATE_LOCKED = "locked"
ACCESS_STATE_EARNING = "earning"
ACCESS_STATE_UNLOCKED = "unlocked"
ACCESS_STATE_EXPIRED = "expired"

ACCESS_STATES = [
    ACCESS_STATE_LOCKED,
    ACCESS_STATE_EARNING,
    ACCESS_STATE_UNLOCKED,
    ACCESS_STATE_EXPIRED,
]

# Commands (named in InvalidTransitionError)
ACTION_START_WORK = "start_work"
ACTION_CANCEL_WORK = "cancel_work"
ACTION_COMPLETE_WORK = "complete_work"

# Rejection reasons
REASON_ALREADY_EARNING = "already_earning"
REASON_NOT_EARNING = "not_earning"
REASON_NOTHING_EARNED = "nothing_earned"

# ------------------------------------------------------------------------------------------------
# Plan Tiers
# ------------------------------------------------------------------------------------------------
PLAN_TIER_FREE = "free"
PLAN_TIER_PRO = "pro"
PLAN_TIER_ADVANCED = "advanced"

PLAN_TIERS = [PLAN_TIER_FREE, PLAN_TIER_PRO, PLAN_TIER_ADVANCED]
DEFAULT_PLAN_TIER = PLAN_TIER_FREE

# Cap value meaning "no daily cap"
UNLIMITED_CAP_SECONDS = -1

PLAN_DAILY_CAP_SECONDS: dict[str, int] = {
    PLAN_TIER_FREE: 3600,  # 1 hour
    PLAN_TIER_PRO: 10800,  # 3 hours
    PLAN_TIER_ADVANCED: UNLIMITED_CAP_SECONDS,
}

PLAN_GRACE_PERIOD_SECONDS: dict[str, int] = {
    PLAN_TIER_FREE: 30,
    PLAN_TIER_PRO: 60,
    PLAN_TIER_ADVANCED: 120,
}

# ------------------------------------------------------------------------------------------------
# Rewards
# ------------------------------------------------------------------------------------------------
BASE_SECONDS_PER_UNIT = 30

WORKOUT_TYPE_PUSH_UPS = "push-ups"
WORKOUT_TYPE_SQUATS = "squats"
WORKOUT_TYPE_SIT_UPS = "sit-ups"
WORKOUT_TYPE_PLANK = "plank"
WORKOUT_TYPE_JUMPING_JACKS = "jumping-jacks"
WORKOUT_TYPE_BURPEES = "burpees"

# Multipliers kept as strings so they convert to Decimal without float drift
WORKOUT_MULTIPLIERS: dict[str, str] = {
    WORKOUT_TYPE_PUSH_UPS: "1.0",
    WORKOUT_TYPE_SQUATS: "1.0",
    WORKOUT_TYPE_SIT_UPS: "1.0",
    WORKOUT_TYPE_PLANK: "1.5",
    WORKOUT_TYPE_JUMPING_JACKS: "0.8",
    WORKOUT_TYPE_BURPEES: "1.0",
}

WORKOUT_TYPES = list(WORKOUT_MULTIPLIERS)

# ------------------------------------------------------------------------------------------------
# Usage Ledger
# ------------------------------------------------------------------------------------------------
USAGE_HISTORY_MAX_DAYS = 30

DATA_SCHEMA_VERSION = "schema_version"
DATA_PLAN_TIER = "plan_tier"
DATA_CURRENT = "current"
DATA_HISTORY = "history"
DATA_UTC_OFFSET_MINUTES = "utc_offset_minutes"
DATA_TIMEZONE_CHANGED_AT = "timezone_changed_at"

DATA_DAY_DATE_KEY = "date_key"
DATA_DAY_EARNED_SECONDS = "earned_seconds"
DATA_DAY_CONSUMED_SECONDS = "consumed_seconds"
DATA_DAY_PLAN_TIER = "plan_tier"

DATA_WORKOUTS = "workouts"

# ------------------------------------------------------------------------------------------------
# Workout History
# ------------------------------------------------------------------------------------------------
WORKOUT_HISTORY_MAX_RECORDS = 100
WORKOUT_RECENT_LIMIT = 10

DATA_WORKOUT_RECORDS = "records"
DATA_WORKOUT_CURRENT_STREAK = "current_streak"
DATA_WORKOUT_BEST_STREAK = "best_streak"
DATA_WORKOUT_TOTAL_WORKOUTS = "total_workouts"
DATA_WORKOUT_TOTAL_EARNED_SECONDS = "total_earned_seconds"
DATA_WORKOUT_LAST_DATE = "last_workout_date"

DATA_RECORD_WORKOUT_TYPE = "workout_type"
DATA_RECORD_UNITS_COMPLETED = "units_completed"
DATA_RECORD_EARNED_SECONDS = "earned_seconds"
DATA_RECORD_COMPLETED_AT = "completed_at"
DATA_RECORD_DATE_KEY = "date_key"

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_TARGETS = "targets"
CONF_PLAN_TIER = "plan_tier"
CONF_TICK_INTERVAL = "tick_interval"
CONF_MONITOR_CAPABILITY = "monitor_capability"

CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"

DEFAULT_TICK_INTERVAL = 5  # seconds
MIN_TICK_INTERVAL = 1
MAX_TICK_INTERVAL = 60

# Monitor capability values (see monitor.MonitorCapability)
MONITOR_CAPABILITY_NONE = "none"
MONITOR_CAPABILITY_MONITORING_ONLY = "monitoring_only"
MONITOR_CAPABILITY_ENFORCEMENT_AVAILABLE = "enforcement_available"

MONITOR_CAPABILITIES = [
    MONITOR_CAPABILITY_NONE,
    MONITOR_CAPABILITY_MONITORING_ONLY,
    MONITOR_CAPABILITY_ENFORCEMENT_AVAILABLE,
]
DEFAULT_MONITOR_CAPABILITY = MONITOR_CAPABILITY_MONITORING_ONLY

# ------------------------------------------------------------------------------------------------
# Events
# ------------------------------------------------------------------------------------------------
EVENT_LAUNCH_ATTEMPTED = f"{DOMAIN}_launch_attempted"
EVENT_LAUNCH_BLOCKED = f"{DOMAIN}_launch_blocked"

# ------------------------------------------------------------------------------------------------
# Services and Fields
# ------------------------------------------------------------------------------------------------
SERVICE_START_WORK = "start_work"
SERVICE_CANCEL_WORK = "cancel_work"
SERVICE_COMPLETE_WORK = "complete_work"
SERVICE_LOCK = "lock"
SERVICE_RECORD_USAGE = "record_usage"
SERVICE_SET_PLAN_TIER = "set_plan_tier"
SERVICE_CALCULATE_REWARD = "calculate_reward"

FIELD_WORKOUT_TYPE = "workout_type"
FIELD_UNITS = "units"
FIELD_UNITS_COMPLETED = "units_completed"
FIELD_SECONDS = "seconds"
FIELD_PLAN_TIER = "plan_tier"
FIELD_TARGET_ID = "target_id"
FIELD_TIMESTAMP = "timestamp"
FIELD_TARGET_MINUTES = "target_minutes"

DEFAULT_TARGET_MINUTES = 10

RESPONSE_MULTIPLIER = "multiplier"
RESPONSE_TARGET_SECONDS = "target_seconds"
RESPONSE_REQUIRED_UNITS = "required_units"
RESPONSE_EARNED_SECONDS = "earned_seconds"
RESPONSE_DESCRIPTION = "description"

# ------------------------------------------------------------------------------------------------
# Sensor Attributes
# ------------------------------------------------------------------------------------------------
ATTR_BLOCKED_TARGETS = "blocked_targets"
ATTR_ACCESSIBLE_TARGETS = "accessible_targets"
ATTR_GRACE_PERIOD_REMAINING = "grace_period_remaining"
ATTR_UNLOCK_TIME_REMAINING = "unlock_time_remaining"
ATTR_MESSAGE = "message"
ATTR_WORKOUT_TYPE = "workout_type"
ATTR_EARNED_SECONDS = "earned_seconds"
ATTR_CONSUMED_SECONDS = "consumed_seconds"
ATTR_CAP_SECONDS = "cap_seconds"
ATTR_HAS_REACHED_CAP = "has_reached_cap"
ATTR_CAP_PROGRESS = "cap_progress"
ATTR_PLAN_TIER = "plan_tier"
ATTR_DATE_KEY = "date_key"
ATTR_CAPABILITY = "capability"
ATTR_WORKOUT_MULTIPLIERS = "workout_multipliers"
ATTR_BEST_STREAK = "best_streak"
ATTR_TOTAL_WORKOUTS = "total_workouts"
ATTR_TOTAL_EARNED_SECONDS = "total_earned_seconds"
ATTR_LAST_WORKOUT_DATE = "last_workout_date"
ATTR_TODAY_COMPLETED = "today_completed"
ATTR_MOST_POPULAR_WORKOUT = "most_popular_workout"
ATTR_RECENT_WORKOUTS = "recent_workouts"
ATTR_DESCRIPTION = "description"

SENSOR_KEY_ACCESS_STATE = "access_state"
SENSOR_KEY_DAILY_USAGE = "daily_usage"
SENSOR_KEY_WORKOUT_STREAK = "workout_streak"

# ------------------------------------------------------------------------------------------------
# User-visible Messages (translation keys)
# ------------------------------------------------------------------------------------------------
MESSAGE_LOCKED = "locked"
MESSAGE_DAILY_CAP_REACHED = "daily_cap_reached"
MESSAGE_GRACE_PERIOD_ENDING = "grace_period_ending"

TRANS_KEY_ERROR_INVALID_TRANSITION = "invalid_transition"
TRANS_KEY_ERROR_INSUFFICIENT_QUOTA = "insufficient_quota"
TRANS_KEY_ERROR_UNKNOWN_WORKOUT_TYPE = "unknown_workout_type"
TRANS_KEY_ERROR_PERSISTENCE_FAILURE = "persistence_failure"
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_NO_TARGETS = "no_targets"

MSG_NO_ENTRY_FOUND = "No Earned Access entry found"
