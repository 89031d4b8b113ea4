from enum import Enum


class ChatMessageType(str, Enum):
    CHAT_MESSAGE = "Chat/MESSAGE"

    # Notifications (user-directed)
    EVENT_ONLINE = "Notification/EVENT_ONLINE"
    EVENT_OFFLINE = "Notification/EVENT_OFFLINE"
    EVENT_NEW_BET = "Notification/EVENT_NEW_BET"
    EVENT_BET_CANCELED = "Notification/EVENT_BET_CANCELED"
    EVENT_RESOLVE = "Notification/EVENT_RESOLVE"
    EVENT_CANCEL = "Notification/EVENT_CANCEL"
    EVENT_USER_REWARD = "Notification/EVENT_USER_REWARD"


NOTIFICATION_TYPES = [t.value for t in ChatMessageType if t.value.startswith("Notification/")]


class TradeStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    REWARDED = "rewarded"
    SOLD = "sold"


# Ledger amounts are integers in base units (18 decimals)
TOKEN_SYMBOL = "WFAIR"
TOKEN_DECIMALS = 18
ONE = 10 ** TOKEN_DECIMALS

# Credited on confirmation / to the referrer
INITIAL_LIQUIDITY = 5000 * ONE
REFERRAL_REWARD = 50 * ONE
