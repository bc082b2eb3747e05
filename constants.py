import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Length of the hex token used for auto-matched room ids
ROOM_ID_LENGTH = int(os.getenv("ROOM_ID_LENGTH", 12))

# When enabled a manual join cannot overwrite an occupied receiver slot either
GUARD_RECEIVER_SLOT = os.getenv("GUARD_RECEIVER_SLOT", "false").lower() in ("1", "true", "yes")

# Pending outbound messages per connection before further sends are dropped
OUTBOX_MAX_SIZE = int(os.getenv("OUTBOX_MAX_SIZE", 256))

BANNER ="WebSocket Server is running securely"

QUEUE_WAITING_MESSAGE = "Waiting for another user to connect..."
MATCHED_MESSAGE = "You've been matched with another user!"
LEFT_QUEUE_MESSAGE = "You've left the waiting queue"
PARTNER_DISCONNECTED_MESSAGE = "The other participant has disconnected"
ALREADY_IN_ROOM_MESSAGE = "You are already in a room"
