from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from core.models import ItemKind, RemoteAction, RemoteActionType


def _action_button(text: str, action: RemoteActionType, item_kind: ItemKind, item_id: int):
    data = RemoteAction(action=action, item_kind=item_kind, item_id=item_id).to_callback_data()
    return InlineKeyboardButton(text, callback_data=data)


# Будильник: выполнить или выключить
def alarm_keyboard(item_kind: ItemKind, item_id: int):
    keyboard = [[
        _action_button("✅ Выполнено", RemoteActionType.COMPLETE, item_kind, item_id),
        _action_button("🔕 Выключить", RemoteActionType.DISMISS, item_kind, item_id),
    ]]
    return InlineKeyboardMarkup(keyboard)


# Повтор: только закрыть
def chime_keyboard(item_kind: ItemKind, item_id: int):
    keyboard = [[
        _action_button("👌 Закрыть", RemoteActionType.DISMISS, item_kind, item_id),
    ]]
    return InlineKeyboardMarkup(keyboard)


def reminder_keyboard(is_alarm: bool, item_kind: ItemKind, item_id: int):
    if is_alarm:
        return alarm_keyboard(item_kind, item_id)
    return chime_keyboard(item_kind, item_id)
