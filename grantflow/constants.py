"""Shared defaults for grantflow workflows."""

DEFAULT_GATEWAY_URL = "https://ipfs.io/ipfs/"
DEFAULT_PINATA_API_URL = "https://api.pinata.cloud"

# Metadata protocol tag understood by the registration strategies.
DEFAULT_METADATA_PROTOCOL = 1
DEFAULT_TRANSACTION_VALUE = 1

EMBEDDED_IMAGE_MARKER = "base64"

DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_POLL_MAX_ATTEMPTS = 30
DEFAULT_RECEIPT_INTERVAL = 1.0
DEFAULT_RECEIPT_MAX_ATTEMPTS = 60

DEFAULT_INDEX_ENTITY = "microGrantRecipient"
DEFAULT_EVENT_NAME = "Registered"
# keccak256("Registered(address,bytes,address)")
REGISTERED_EVENT_TOPIC = (
    "0xa197306e3dd5494a61a695381aa809a53b8e377a685e84e404a85d5a8da6cc62"
)
RECIPIENT_ID_ARG = "recipientId"

PUBLISH_STEP = 0
REGISTER_STEP = 1
INDEX_STEP = 2

STORAGE_TARGET = "IPFS"
POOL_TARGET = "Pool"
