from beacon_push.models.friend_subscription import FriendSubscription
from beacon_push.models.profile import Profile
from beacon_push.models.push_ticket import PushTicket
from beacon_push.models.push_token import PushToken
from beacon_push.models.user import User
from beacon_push.models.user_friend import UserFriend

__all__ = [
    "FriendSubscription",
    "Profile",
    "PushTicket",
    "PushToken",
    "User",
    "UserFriend",
]
