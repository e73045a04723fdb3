import json

import redis
from flask import current_app

ADMIN_CHANNEL = "admin_transactions"
EVENT_PAYMENT_SUCCESS = "payment_success"
EVENT_TRANSACTION_UPDATED = "transaction_updated"


def payment_channel(reference):
    return f"payment_{reference}"


def provider_channel(user_id):
    return f"provider_transactions_{user_id}"


class RealtimeService:
    EXTENSION_KEY = "tourpay_realtime"

    @staticmethod
    def _client():
        url = current_app.config.get("REALTIME_REDIS_URL")
        if not url:
            return None
        client = current_app.extensions.get(RealtimeService.EXTENSION_KEY)
        if client is None:
            timeout = current_app.config["REALTIME_TIMEOUT_SECONDS"]
            client = redis.Redis.from_url(url, socket_timeout=timeout, socket_connect_timeout=timeout)
            current_app.extensions[RealtimeService.EXTENSION_KEY] = client
        return client

    @staticmethod
    def publish(channel, event, payload):
        client = RealtimeService._client()
        if client is None:
            current_app.logger.debug("Realtime publishing disabled; dropped %s on %s", event, channel)
            return False
        message = json.dumps({"event": event, "payload": payload}, default=str)
        receivers = client.publish(channel, message)
        current_app.logger.debug("Published %s on %s to %s subscribers", event, channel, receivers)
        return True
