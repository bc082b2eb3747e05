## WebSocket message types (the `type` field of every frame)

# client -> server
JOIN_ROOM = "joinRoom"
CHAT_MESSAGE = "chatMessage"
TERMINATE_ROOM = "terminateRoom"
LEAVE_QUEUE = "leaveQueue"
JOIN_QUEUE = "joinQueue"

# server -> client
QUEUE_STATUS = "queueStatus"
MATCHED = "matched"
PARTICIPANT_LEFT = "participantLeft"
LEFT_QUEUE = "leftQueue"
ERROR = "error"
# CHAT_MESSAGE is also used for relayed payloads, tagged with `from`

# **Roles**
# - `sender`   - first connection popped by the matching pass, or manual join with role=sender
# - `receiver` - second connection popped, or manual join with role=receiver
SENDER = "sender"
RECEIVER = "receiver"
