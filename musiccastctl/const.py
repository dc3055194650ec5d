PRODUCT_PATH = "/YamahaExtendedControl"
DEFAULT_API_PREFIX = "/v1"
DEFAULT_ZONE = "main"

ENV_PREFIX = "MUSICCAST_"

CONTENT_TYPE_JSON = "application/json"

# seconds, multiplied by (attempt index + 1)
RETRY_BACKOFF = 0.2

OUTPUT_PRETTY = "pretty"
OUTPUT_JSON = "json"
OUTPUT_YAML = "yaml"
OUTPUT_TABLE = "table"
OUTPUT_FORMATS = [OUTPUT_PRETTY, OUTPUT_JSON, OUTPUT_YAML, OUTPUT_TABLE]

SERVICE_TYPES = ["_musiccast._tcp", "_yamaha._tcp", "_yxc._tcp"]
BROWSE_TIMEOUT = 3.0
RESOLVE_TIMEOUT = 2.0
DNS_SD = "dns-sd"

RESPONSE_CODE = {
    0: "Successful request",
    1: "Initializing",
    2: "Internal Error",
    3: "Invalid Request (A method did not exist, a method wasn't appropriate etc.)",
    4: "Invalid Parameter (Out of range, invalid characters etc.)",
    5: "Guarded (Unable to setup in current status etc.)",
    6: "Time Out",
    99: "Firmware Updating",
    100: "Access Error",
    101: "Other Errors",
    102: "Wrong User Name",
    103: "Wrong Password",
    104: "Account Expired",
    105: "Account Disconnected/Gone Off/Shut Down",
    106: "Account Number Reached to the Limit",
    107: "Server Maintenance",
    108: "Invalid Account",
    109: "License Error",
    110: "Read Only Mode",
    111: "Max Stations",
    112: "Access Denied",
}
