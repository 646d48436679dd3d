
# Topics published to the remote service
TOPIC_VERSION = "apiproxy/v1"
RAW_MAVLINK_TOPIC = "{root}/vehicles/{vehicle_id}/telem/raw/mavlink/{msg}"
BINDING_TOPIC = "{root}/vehicles/{vehicle_id}/telem/state/binding"

# Interface number reserved for frames generated by the GCS itself
GCS_INTERFACE = -1
GCS_VEHICLE_ID = "gcs"
DEFAULT_GCS_SYSID = 255

DEFAULT_LOGIN_TIMEOUT = 5.0
DEFAULT_FLUSH_BATCH = 100

USECS_PER_SEC = 1000000
