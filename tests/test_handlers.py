import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace

from core.clock import Clock
from handlers.callbacks.reminders import reminder_action_callback
from services.data_service import DataService
from services.tracker_service import TrackerService


class FakeQuery:
    def __init__(self, data):
        self.data = data
        self.answers = []
        self.markup_removed = False

    async def answer(self, text=None):
        self.answers.append(text)

    async def edit_message_reply_markup(self, reply_markup=None):
        self.markup_removed = True


class TestReminderCallback(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        root = Path(self.tmp.name)
        self.tracker = TrackerService(
            DataService(data_file=root / "state.json", backup_dir=root / "backups"),
            Clock("UTC"),
        )
        services = SimpleNamespace(
            config=SimpleNamespace(telegram=SimpleNamespace(owner_chat_id=None)),
            tracker_service=self.tracker,
        )
        self.context = SimpleNamespace(application=SimpleNamespace(bot_data={'services': services}))

    def tearDown(self) -> None:
        self.tmp.cleanup()

    async def press(self, data: str) -> FakeQuery:
        query = FakeQuery(data)
        update = SimpleNamespace(callback_query=query, effective_chat=None)
        await reminder_action_callback(update, self.context)
        return query

    async def test_complete_then_repeat(self) -> None:
        habit = self.tracker.add_habit("Вода")

        query = await self.press(f"rem:complete:habit:{habit.id}")
        self.assertEqual(query.answers, ["✅ Отмечено!"])
        self.assertTrue(query.markup_removed)

        query = await self.press(f"rem:complete:habit:{habit.id}")
        self.assertEqual(query.answers, ["Уже выполнено"])

    async def test_complete_deleted_item(self) -> None:
        task = self.tracker.add_task("Позвонить")
        self.tracker.delete_task(task.id)

        query = await self.press(f"rem:complete:task:{task.id}")
        self.assertEqual(query.answers, ["Элемент не найден"])
        self.assertEqual(self.tracker.state.user.xp, 0)

    async def test_unknown_action(self) -> None:
        query = await self.press("rem:snooze:habit:1")
        self.assertEqual(query.answers, ["Неизвестное действие"])


if __name__ == "__main__":
    unittest.main()
