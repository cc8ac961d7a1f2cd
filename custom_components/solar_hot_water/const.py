"""Constants for the Solar Hot Water integration."""

DOMAIN = "solar_hot_water"

CONF_ENABLE_ENTITY = "enable_entity"
CONF_OUTPUT_ENTITY = "output_entity"
CONF_BATTERY_SOC_ENTITY = "battery_soc_entity"
CONF_BATTERY_SOC_START_THRESHOLD = "battery_soc_start_threshold"
CONF_BATTERY_SOC_STOP_THRESHOLD = "battery_soc_stop_threshold"
CONF_BATTERY_SOC_FORMAT = "battery_soc_format"
CONF_POWER_ENTITY = "power_entity"
CONF_POWER_THRESHOLD = "power_threshold"

SOC_FORMAT_FRACTION = "fraction"  # 0-1, scaled by 100 before use
SOC_FORMAT_PERCENT = "percent"  # already 0-100

# Default entity bindings
DEFAULT_ENABLE_ENTITY = "input_boolean.solar_hot_water"
DEFAULT_OUTPUT_ENTITY = "sensor.solar_hot_water_output"
DEFAULT_BATTERY_SOC_ENTITY = "sensor.battery_state_of_charge"
DEFAULT_POWER_ENTITY = "sensor.solar_panel_power"

# Default Threshold Values
DEFAULT_BATTERY_SOC_START_THRESHOLD = 99  # % - SOC needed before heating is permitted
DEFAULT_BATTERY_SOC_STOP_THRESHOLD = 95  # % - SOC at which the permit is revoked
DEFAULT_POWER_THRESHOLD = 400  # W - power must exceed this to energise the heater
DEFAULT_BATTERY_SOC_FORMAT = SOC_FORMAT_FRACTION

SOC_PERCENT_PRECISION = 2  # decimals kept after scaling a fraction to percent

# Input names used by the synchronizer
INPUT_ENABLED = "enabled"
INPUT_BATTERY_SOC = "battery_soc"
INPUT_POWER = "power"
INPUT_NAMES = (INPUT_ENABLED, INPUT_BATTERY_SOC, INPUT_POWER)

OUTPUT_OFF = 0
OUTPUT_ON = 1

REASON_SOC_TOO_LOW = "battery SOC too low"
REASON_POWER_TOO_LOW = "power level too low"

ATTR_ENABLED = "enabled"
ATTR_SOC_PERMIT = "soc_permit"
ATTR_HEATER_ON = "heater_on"
ATTR_BATTERY_SOC = "battery_soc"
ATTR_POWER = "power"
ATTR_REASON = "reason"
ATTR_SOURCE = "source"

NOTIFICATION_ID_ERROR = "solar_hot_water_error"

INTEGRATION_VERSION = "1.0.0"
