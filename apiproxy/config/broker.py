import os

from apiproxy.core.constants import TOPIC_VERSION


def load_mqtt_defaults() -> dict:
    """Default MQTT settings, overridable from the environment.
    Returns dict with host, port, topic_prefix, qos, client_id.
    """
    host = os.getenv('APIPROXY_MQTT_HOST', 'localhost')
    try:
        port = int(os.getenv('APIPROXY_MQTT_PORT', 1883))
    except ValueError:
        raise ValueError(f"APIPROXY_MQTT_PORT must be an integer, got {os.getenv('APIPROXY_MQTT_PORT')!r}")
    topic_prefix = os.getenv('APIPROXY_TOPIC_PREFIX', TOPIC_VERSION)

    return {
        'host': host,
        'port': port,
        'topic_prefix': topic_prefix,
        'qos': 0,
        'client_id': 'apiproxy',
    }
