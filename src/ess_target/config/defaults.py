# ESS
DEFAULT_ESS_ENDPOINT = "ess.aliyuncs.com"

# scaling activity polling
DEFAULT_RETRY_INTERVAL_SECONDS = 10
DEFAULT_RETRY_LIMIT = 15

# nomad
DEFAULT_NOMAD_ADDRESS = "http://127.0.0.1:4646"
DEFAULT_NOMAD_REQUEST_TIMEOUT_SECONDS = 30

# cluster scale in
DEFAULT_NODE_DRAIN_DEADLINE = "15m"
DEFAULT_NODE_DRAIN_POLL_INTERVAL_SECONDS = 10
DEFAULT_NODE_DRAIN_GRACE_SECONDS = 60
DEFAULT_NODE_SELECTOR_STRATEGY = "least_busy"

# logging
DEFAULT_LOGGING_PATHS = ("/dev/stdout",)
DEFAULT_LOGGING_LEVEL = "INFO"
