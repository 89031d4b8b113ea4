from sqladmin import Admin, ModelView

from wallfair.admin_auth import AdminAuth
from wallfair.core.context import AppContext
from wallfair.db.models.chat_message import ChatMessage
from wallfair.db.models.trade import Trade
from wallfair.db.models.user import User


class UserAdmin(ModelView, model=User):
    column_list = [User.id, User.username, User.name, User.phone, User.email, User.admin, User.confirmed, User.amount_won, User.date]
    column_searchable_list = [User.username, User.name, User.phone, User.email]
    column_sortable_list = [User.amount_won, User.date]
    icon = "fa-solid fa-user"


class ChatMessageAdmin(ModelView, model=ChatMessage):
    column_list = [ChatMessage.id, ChatMessage.room_id, ChatMessage.user_id, ChatMessage.type, ChatMessage.message, ChatMessage.date, ChatMessage.read]
    column_searchable_list = [ChatMessage.message]
    column_sortable_list = [ChatMessage.date]
    icon = "fa-solid fa-comments"


class TradeAdmin(ModelView, model=Trade):
    column_list = [Trade.id, Trade.user_id, Trade.bet_id, Trade.outcome_index, Trade.investment_amount, Trade.status, Trade.date]
    column_sortable_list = [Trade.date]
    can_create = False
    can_edit = False
    icon = "fa-solid fa-chart-line"


def setup_admin(app, ctx: AppContext) -> Admin:
    admin = Admin(app, engine=ctx.engine, authentication_backend=AdminAuth(ctx), title="Wallfair Admin")
    admin.add_view(UserAdmin)
    admin.add_view(ChatMessageAdmin)
    admin.add_view(TradeAdmin)
    return admin
