"""Reply and inline keyboards, plus the menu labels and callback prefixes."""

from datetime import datetime
from typing import List, Optional, Sequence

from telegram import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

from ..models.task import (
    ChecklistType,
    IssueStatus,
    TaskStatus,
    TaskTemplateView,
    TaskView,
)
from ..utils.date_parser import quick_options
from ..utils.formatters import chunk_buttons, status_icon

# Main menu labels
MENU_CREATE_TASK = "📝 Создать задачу"
MENU_MY_TASKS = "📋 Мои задачи"
MENU_ALL_TASKS = "📊 Все задачи"
MENU_STATS = "📈 Статистика"
MENU_JOIN = "🏢 Присоединиться к workspace"
MENU_REPORT_ISSUE = "🛠 Сообщить о проблеме"
MENU_CHECKLIST = "📋 Добавить чек-лист"
MENU_PROFILE = "👤 Профиль"
MENU_ISSUES = "🚨 Проблемы"
MENU_TEMPLATES = "📑 Шаблоны"

MENU_LABELS = frozenset({
    MENU_CREATE_TASK, MENU_MY_TASKS, MENU_ALL_TASKS, MENU_STATS, MENU_JOIN,
    MENU_REPORT_ISSUE, MENU_CHECKLIST, MENU_PROFILE, MENU_ISSUES, MENU_TEMPLATES,
})

ISSUE_CATEGORIES = [
    ("🔧 Оборудование", "Оборудование"),
    ("🧹 Уборка", "Уборка"),
    ("📦 Инвентарь", "Инвентарь"),
    ("❓ Другое", "Другое"),
]

CHECKLIST_TYPE_LABELS = {
    ChecklistType.OPENING: "🌅 Открытие",
    ChecklistType.CLOSING: "🌙 Закрытие",
    ChecklistType.DAILY: "📆 Ежедневный",
}

ISSUE_STATUS_LABELS = {
    IssueStatus.NEW: "🆕 Новая",
    IssueStatus.IN_PROGRESS: "🔧 В работу",
    IssueStatus.RESOLVED: "✅ Решена",
}


def _button(text: str, data: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text=text, callback_data=data)


def main_menu(is_admin: bool = False) -> ReplyKeyboardMarkup:
    rows = [
        [MENU_MY_TASKS, MENU_REPORT_ISSUE],
        [MENU_PROFILE, MENU_JOIN],
    ]
    if is_admin:
        rows = [
            [MENU_CREATE_TASK, MENU_ALL_TASKS],
            [MENU_STATS, MENU_ISSUES],
            [MENU_TEMPLATES, MENU_CHECKLIST],
        ] + rows
    return ReplyKeyboardMarkup(
        [[KeyboardButton(label) for label in row] for row in rows],
        resize_keyboard=True,
    )


def deadline_keyboard(now: Optional[datetime] = None) -> InlineKeyboardMarkup:
    """Quick-pick deadlines, two per row, plus free-text entry."""
    buttons = [_button(option.label, option.code) for option in quick_options(now)]
    rows = chunk_buttons(buttons, 2)
    rows.append([_button("✏️ Ввести дату", "deadline:custom")])
    return InlineKeyboardMarkup(rows)


def back_to_quick_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[_button("⬅️ Быстрый выбор", "deadline:quick")]])


def issue_category_keyboard() -> InlineKeyboardMarkup:
    buttons = [_button(label, f"issue:cat:{name}") for label, name in ISSUE_CATEGORIES]
    return InlineKeyboardMarkup(chunk_buttons(buttons, 2))


def skip_photo_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[_button("⏭ Без фото", "issue:skip")]])


def checklist_type_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [_button(label, f"checklist:type:{kind.value}")]
        for kind, label in CHECKLIST_TYPE_LABELS.items()
    ])


def onboarding_keyboard(step: int, last_step: int) -> InlineKeyboardMarkup:
    nav = []
    if step > 1:
        nav.append(_button("⬅️ Назад", "onboarding:prev"))
    if step < last_step:
        nav.append(_button("Далее ➡️", "onboarding:next"))

    rows = [nav] if nav else []
    if step == 2:
        rows.append([_button("✏️ Изменить имя", "onboarding:edit_name")])
    if step == 3:
        rows.append([_button("🏢 Сменить workspace", "onboarding:change_workspace")])
    rows.append([_button("❓ Помощь", "onboarding:help")])
    if step == last_step:
        rows.append([_button("🚀 Начать работу", "onboarding:complete")])
    return InlineKeyboardMarkup(rows)


def onboarding_back_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[_button("⬅️ Вернуться", "onboarding:back")]])


def task_list_keyboard(tasks: Sequence[TaskView], now: Optional[datetime] = None) -> Optional[InlineKeyboardMarkup]:
    if not tasks:
        return None
    return InlineKeyboardMarkup([
        [_button(f"{status_icon(task, now)} {task.title[:40]}", f"task:view:{task.id}")]
        for task in tasks
    ])


def admin_task_list_keyboard(tasks: Sequence[TaskView], now: Optional[datetime] = None) -> InlineKeyboardMarkup:
    rows: List[List[InlineKeyboardButton]] = [
        [_button(f"{status_icon(task, now)} {task.title[:40]}", f"task:details:{task.id}")]
        for task in tasks
    ]
    rows.append([
        _button("Все", "tasks:filter:all"),
        _button("Активные", "tasks:filter:active"),
    ])
    rows.append([
        _button("Просроченные", "tasks:filter:overdue"),
        _button("На проверке", "tasks:filter:pending_review"),
    ])
    rows.append([
        _button("↕️ Дедлайн", "tasks:sort:deadline"),
        _button("↕️ Статус", "tasks:sort:status"),
        _button("↕️ Исполнитель", "tasks:sort:assignee"),
    ])
    return InlineKeyboardMarkup(rows)


def task_actions_keyboard(task: TaskView, is_admin: bool = False) -> InlineKeyboardMarkup:
    rows = []
    if task.status in (TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS):
        rows.append([
            _button("✅ Выполнено", f"task:complete:{task.id}"),
            _button("⚠️ Проблема", f"task:issue:{task.id}"),
        ])
    if is_admin:
        rows.append([_button("⏰ Напомнить", f"task:remind:{task.id}")])
        if task.status == TaskStatus.PENDING_REVIEW:
            rows.append([
                _button("✅ Принять", f"task:approve:{task.id}"),
                _button("❌ Отклонить", f"task:reject:{task.id}"),
            ])
    rows.append([_button("📄 Подробнее", f"task:details:{task.id}")])
    return InlineKeyboardMarkup(rows)


def review_keyboard(task_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        _button("✅ Принять", f"task:approve:{task_id}"),
        _button("❌ Отклонить", f"task:reject:{task_id}"),
    ]])


def join_keyboard(invite_code: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[_button("🏢 Присоединиться", f"ws:join:{invite_code}")]])


def workspace_panel_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [_button("ℹ️ Информация", "ws:info"), _button("🔗 Приглашение", "ws:invite")],
        [_button("📈 Статистика", "ws:stats"), _button("👥 Роли", "ws:members")],
    ])


def admin_panel_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [_button("📊 Все задачи", "tasks:filter:all"), _button("🚨 Проблемы", "issues:list")],
        [_button("🏢 Workspace", "ws:info"), _button("📑 Шаблоны", "template:list")],
    ])


def issue_status_keyboard(issue_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        _button(label, f"issue:status:{issue_id}:{status.value}")
        for status, label in ISSUE_STATUS_LABELS.items()
    ]])


def members_keyboard(members, roles) -> InlineKeyboardMarkup:
    """One row per member with a button per role."""
    rows = []
    for member in members:
        rows.append([_button(f"👤 {member.display_name}", "noop")])
        rows.append([
            _button(role.name, f"role:set:{member.id}:{role.id}") for role in roles
        ])
    return InlineKeyboardMarkup(rows)


def templates_keyboard(templates: Sequence[TaskTemplateView]) -> InlineKeyboardMarkup:
    rows = [
        [
            _button(f"📄 {template.name}", f"template:use:{template.id}"),
            _button("🗑", f"template:delete:{template.id}"),
        ]
        for template in templates
    ]
    rows.append([_button("➕ Новый шаблон", "template:create")])
    return InlineKeyboardMarkup(rows)
