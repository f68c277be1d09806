"""
Display text for tasks, issues and workspaces.

Pure functions: every time-dependent helper takes an optional naive local
`now` so output is reproducible. Full (desktop) and compact (mobile)
variants share the same status and relative-time vocabulary.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Sequence, TypeVar

from ..models.task import (
    ACTIVE_STATUSES,
    IssueStatus,
    IssueView,
    TaskStatus,
    TaskView,
    UserView,
    WorkspaceStats,
    WorkspaceView,
)
from .date_parser import format_for_display
from .datetime_utils import get_local_now, hours_until, round_half_up

T = TypeVar("T")

STATUS_ICONS = {
    TaskStatus.ASSIGNED: "🟡",
    TaskStatus.IN_PROGRESS: "🟢",
    TaskStatus.PENDING_REVIEW: "⏳",
    TaskStatus.APPROVED: "✅",
    TaskStatus.REJECTED: "❌",
}
STATUS_TEXTS = {
    TaskStatus.ASSIGNED: "🟡 Не начат",
    TaskStatus.IN_PROGRESS: "🟢 В процессе",
    TaskStatus.PENDING_REVIEW: "⏳ На проверке",
    TaskStatus.APPROVED: "✅ Выполнен",
    TaskStatus.REJECTED: "❌ Отклонен",
}
OVERDUE_ICON = "🔴"
OVERDUE_TEXT = "🔴 Просрочен"
UNKNOWN_ICON = "⚪"
UNKNOWN_TEXT = "⚪ Неизвестно"

ISSUE_STATUS_TEXTS = {
    IssueStatus.NEW: "🆕 Новая",
    IssueStatus.IN_PROGRESS: "🔧 В работе",
    IssueStatus.RESOLVED: "✅ Решена",
}

MONTHS_SHORT = [
    "янв.", "февр.", "мар.", "апр.", "мая", "июн.",
    "июл.", "авг.", "сент.", "окт.", "нояб.", "дек.",
]

BAR_CELLS = 10
BAR_FULL = "█"
BAR_EMPTY = "░"

MOBILE_MESSAGE_LIMIT = 200
SENTENCE_END = re.compile(r"[.!?]")


# ==================== STATUS ====================

def is_task_overdue(task: TaskView, now: Optional[datetime] = None) -> bool:
    """Deadline passed while the task is still assigned or in progress."""
    if task.deadline is None or task.status not in ACTIVE_STATUSES:
        return False
    return task.deadline < (now or get_local_now())


def status_icon(task: TaskView, now: Optional[datetime] = None) -> str:
    if is_task_overdue(task, now):
        return OVERDUE_ICON
    return STATUS_ICONS.get(task.status, UNKNOWN_ICON)


def status_text(task: TaskView, now: Optional[datetime] = None) -> str:
    if is_task_overdue(task, now):
        return OVERDUE_TEXT
    return STATUS_TEXTS.get(task.status, UNKNOWN_TEXT)


# ==================== RELATIVE TIME ====================

def short_date(moment: datetime) -> str:
    return f"{moment.day} {MONTHS_SHORT[moment.month - 1]}"


def format_relative(target: datetime, now: Optional[datetime] = None) -> str:
    """
    Relative phrase for a moment before or after now.

    Buckets: now (<1 min), minutes (<1h), hours (<24h), days (<7d),
    then the calendar date.
    """
    now = now or get_local_now()
    seconds = (target - now).total_seconds()
    future = seconds >= 0
    seconds = abs(seconds)

    if seconds < 60:
        return "Сейчас" if future else "Только что"
    if seconds < 3600:
        minutes = round_half_up(seconds / 60)
        return f"Через {minutes}м" if future else f"{minutes} мин назад"
    if seconds < 86400:
        hours = round_half_up(seconds / 3600)
        return f"Через {hours}ч" if future else f"{hours}ч назад"
    if seconds < 7 * 86400:
        days = round_half_up(seconds / 86400)
        if future:
            return "Завтра" if days == 1 else f"Через {days}д"
        return f"{days}д назад"
    return short_date(target)


def format_deadline_short(deadline: Optional[datetime], now: Optional[datetime] = None) -> str:
    if deadline is None:
        return "Без дедлайна"
    now = now or get_local_now()
    if deadline < now:
        return "Просрочен"
    return format_relative(deadline, now)


# ==================== PROGRESS ====================

def _bar(fraction: float) -> str:
    filled = round_half_up(fraction * BAR_CELLS)
    return BAR_FULL * filled + BAR_EMPTY * (BAR_CELLS - filled)


def progress_fraction(task: TaskView, now: Optional[datetime] = None) -> float:
    """Share of the created→deadline window already elapsed, in [0, 1]."""
    if task.deadline is None:
        return 0.0
    now = now or get_local_now()
    total = (task.deadline - task.created_at).total_seconds()
    if total <= 0:
        return 1.0 if now >= task.deadline else 0.0
    elapsed = (now - task.created_at).total_seconds()
    return min(max(elapsed / total, 0.0), 1.0)


def progress_bar(task: TaskView, now: Optional[datetime] = None) -> str:
    if task.deadline is None:
        return f"Прогресс: {_bar(0)} 0%"
    if task.status == TaskStatus.APPROVED:
        return f"Прогресс: {_bar(1)} 100% ✅"
    if task.status == TaskStatus.REJECTED:
        return f"Прогресс: {_bar(1)} 100% ❌"

    fraction = progress_fraction(task, now)
    line = f"Прогресс: {_bar(fraction)} {round_half_up(fraction * 100)}%"
    if is_task_overdue(task, now):
        line += f" {OVERDUE_ICON}"
    return line


# ==================== TASKS ====================

def _assignee(task: TaskView) -> str:
    if task.assignee_username:
        return f"@{task.assignee_username}"
    if task.assignee_telegram_id:
        return str(task.assignee_telegram_id)
    return "не назначен"


def format_task_list(
    tasks: Sequence[TaskView],
    mobile: bool = False,
    title: str = "Мои задачи",
    now: Optional[datetime] = None,
) -> str:
    """Header with active/overdue counters followed by one block per task."""
    if not tasks:
        return "📋 Нет активных задач"

    now = now or get_local_now()
    active = sum(1 for t in tasks if t.status in ACTIVE_STATUSES)
    overdue = sum(1 for t in tasks if is_task_overdue(t, now))

    header = f"📊 {title} ({active} активных)"
    if overdue:
        header += f", {overdue} просроченных"

    if mobile:
        blocks = [format_mobile_task(t, now) for t in tasks]
        return header + "\n\n" + "\n\n".join(blocks)

    blocks = []
    for i, task in enumerate(tasks, 1):
        blocks.append(
            f"┌─ {status_icon(task, now)} {i}. {task.title}\n"
            f"│  📅 {format_deadline_short(task.deadline, now)}\n"
            f"│  👤 {_assignee(task)}\n"
            f"└─ {progress_bar(task, now)}"
        )
    return header + "\n\n" + "\n\n".join(blocks)


def format_task_details(task: TaskView, now: Optional[datetime] = None) -> str:
    now = now or get_local_now()

    deadline_line = f"📅 Дедлайн: {format_for_display(task.deadline)}"
    if task.deadline is not None:
        deadline_line += f" ({format_relative(task.deadline, now).lower()})"

    lines = [
        f"📋 {task.title}",
        "",
        f"📝 {task.description or 'Без описания'}",
        "",
        f"Статус: {status_text(task, now)}",
        f"👤 Исполнитель: {_assignee(task)}",
    ]
    if task.creator_username:
        lines.append(f"👨‍💼 Создал: @{task.creator_username}")
    lines += [
        deadline_line,
        f"🕐 Создана: {format_relative(task.created_at, now)}",
        "",
        progress_bar(task, now),
    ]
    return "\n".join(lines)


def format_task_created(task: TaskView) -> str:
    return (
        "✅ Задача создана и назначена.\n\n"
        f"📋 {task.title}\n"
        f"👤 {_assignee(task)}\n"
        f"📅 {format_for_display(task.deadline)}"
    )


def format_new_task_notice(task: TaskView) -> str:
    """Message for the assignee when a task lands on them."""
    creator = f"@{task.creator_username}" if task.creator_username else "администратора"
    return (
        f"📬 Новая задача от {creator}\n\n"
        f"📋 {task.title}\n"
        f"📝 {task.description or 'Без описания'}\n"
        f"📅 Дедлайн: {format_for_display(task.deadline)}"
    )


def format_review_request(task: TaskView) -> str:
    return (
        f"⏳ {_assignee(task)} завершил задачу и ждет проверки\n\n"
        f"📋 {task.title}\n"
        f"📅 Дедлайн: {format_for_display(task.deadline)}"
    )


def format_reminder_message(
    task: TaskView,
    admin_username: str = "admin",
    mobile: bool = False,
    now: Optional[datetime] = None,
) -> str:
    """Manual reminder sent by an admin to the assignee."""
    now = now or get_local_now()
    if mobile:
        return shorten_message(
            f"⏰ @{admin_username} напоминает:\n"
            f"📋 {task.title}\n"
            f"📅 {format_short_deadline(task.deadline, now)}"
        )
    return (
        f"⏰ Напоминание от @{admin_username}\n\n"
        f"📋 {task.title}\n"
        f"📅 Дедлайн: {format_for_display(task.deadline)}\n"
        f"Статус: {status_text(task, now)}\n\n"
        f"{progress_bar(task, now)}"
    )


# ==================== SCHEDULED REMINDERS ====================

class ReminderBucket(str, Enum):
    OVERDUE = "overdue"
    WITHIN_HOUR = "within_hour"
    WITHIN_3_HOURS = "within_3_hours"
    WITHIN_DAY = "within_day"


REMINDER_HEADERS = {
    ReminderBucket.OVERDUE: "🔴 ЗАДАЧА ПРОСРОЧЕНА!",
    ReminderBucket.WITHIN_HOUR: "⏰ СРОЧНО! До дедлайна меньше часа",
    ReminderBucket.WITHIN_3_HOURS: "⚠️ Напоминание: дедлайн через несколько часов",
    ReminderBucket.WITHIN_DAY: "📅 Завтра дедлайн!",
}


def reminder_bucket(deadline: Optional[datetime], now: Optional[datetime] = None) -> Optional[ReminderBucket]:
    """Which hourly reminder, if any, a deadline falls into."""
    if deadline is None:
        return None
    hours = round_half_up(hours_until(deadline, now))
    if hours <= 0:
        return ReminderBucket.OVERDUE
    if hours <= 1:
        return ReminderBucket.WITHIN_HOUR
    if hours <= 3:
        return ReminderBucket.WITHIN_3_HOURS
    if hours <= 24:
        return ReminderBucket.WITHIN_DAY
    return None


def format_deadline_reminder(task: TaskView, bucket: ReminderBucket, now: Optional[datetime] = None) -> str:
    now = now or get_local_now()
    return (
        f"{REMINDER_HEADERS[bucket]}\n\n"
        f"📋 {task.title}\n"
        f"📅 {format_for_display(task.deadline)} "
        f"({format_relative(task.deadline, now).lower()})"
    )


# ==================== WORKSPACES ====================

def invite_link(invite_code: str, bot_username: str) -> str:
    return f"https://t.me/{bot_username}?start=invite_{invite_code}"


def compute_workspace_stats(
    tasks: Iterable[TaskView],
    total_users: int = 0,
    now: Optional[datetime] = None,
) -> WorkspaceStats:
    now = now or get_local_now()
    stats = WorkspaceStats(total_users=total_users)
    for task in tasks:
        stats.total_tasks += 1
        if task.status == TaskStatus.APPROVED:
            stats.completed += 1
        elif task.status == TaskStatus.PENDING_REVIEW:
            stats.pending_review += 1
        elif task.status in ACTIVE_STATUSES:
            stats.active += 1
            if is_task_overdue(task, now):
                stats.overdue += 1
    return stats


def format_workspace_stats(stats: WorkspaceStats) -> str:
    return (
        "📈 Статистика\n\n"
        f"📋 Всего задач: {stats.total_tasks}\n"
        f"✅ Выполнено: {stats.completed}\n"
        f"🔄 Активных: {stats.active}\n"
        f"⏳ На проверке: {stats.pending_review}\n"
        f"⚠️ Просрочено: {stats.overdue}\n"
        f"👥 Участников: {stats.total_users}\n"
        f"📊 Выполнение: {stats.completion_rate}%"
    )


def format_workspace_info(workspace: WorkspaceView, stats: Optional[WorkspaceStats] = None) -> str:
    text = (
        f"🏢 {workspace.name}\n\n"
        f"🔑 Код приглашения: {workspace.invite_code}\n"
        f"🌍 Часовой пояс: {workspace.timezone}\n"
        f"👥 Участников: {workspace.member_count}"
    )
    if stats is not None:
        text += f"\n📋 Задач: {stats.total_tasks} (выполнено {stats.completion_rate}%)"
    return text


def format_invite_info(workspace: WorkspaceView, link: str) -> str:
    return (
        f"✅ Рабочее пространство «{workspace.name}» создано!\n\n"
        f"🔑 Код приглашения: {workspace.invite_code}\n"
        f"🔗 Ссылка: {link}\n\n"
        "Отправьте код или ссылку сотрудникам, чтобы они присоединились."
    )


def format_profile(user: UserView, workspace_name: Optional[str] = None, is_admin: bool = False) -> str:
    role = user.role_name or "Сотрудник"
    if is_admin:
        role += " (админ)"
    return (
        "👤 Профиль\n\n"
        f"Имя: {user.display_name}\n"
        f"Telegram ID: {user.telegram_id}\n"
        f"Роль: {role}\n"
        f"🏢 Рабочее пространство: {workspace_name or 'не выбрано'}"
    )


# ==================== ISSUES ====================

def format_issue(issue: IssueView) -> str:
    lines = [
        f"🛠 Проблема #{issue.id[:8]}",
        "",
        f"📂 Категория: {issue.category}",
        f"📝 {issue.description or 'Без описания'}",
        f"Статус: {ISSUE_STATUS_TEXTS.get(issue.status, UNKNOWN_TEXT)}",
    ]
    if issue.reporter_username:
        lines.append(f"👤 Сообщил: @{issue.reporter_username}")
    if issue.task_id:
        lines.append(f"🔗 Задача: #{issue.task_id[:8]}")
    if issue.photo_url:
        lines.append(f"📷 Фото: {issue.photo_url}")
    return "\n".join(lines)


def format_issue_list(issues: Sequence[IssueView]) -> str:
    if not issues:
        return "✅ Открытых проблем нет"
    lines = [f"🚨 Проблемы ({len(issues)})", ""]
    for issue in issues:
        icon = ISSUE_STATUS_TEXTS.get(issue.status, UNKNOWN_TEXT).split()[0]
        lines.append(f"{icon} #{issue.id[:8]} {issue.category}: {shorten_message(issue.description, 50)}")
    return "\n".join(lines)


# ==================== COMPACT (MOBILE) ====================

def shorten_message(text: str, max_length: int = MOBILE_MESSAGE_LIMIT) -> str:
    """Fit text into max_length, cutting after the last whole sentence if there is one."""
    if len(text) <= max_length:
        return text
    ends = [m.start() for m in SENTENCE_END.finditer(text, 0, max_length - 2)]
    if ends and ends[-1] > 0:
        return text[: ends[-1]].rstrip() + "..."
    return text[: max_length - 3] + "..."


def format_short_deadline(deadline: Optional[datetime], now: Optional[datetime] = None) -> str:
    if deadline is None:
        return "Без дедлайна"
    now = now or get_local_now()
    if deadline < now:
        return "Просрочен ⚠️"
    return format_relative(deadline, now)


def format_mobile_task(task: TaskView, now: Optional[datetime] = None) -> str:
    return (
        f"{status_icon(task, now)} {shorten_message(task.title, 30)}\n"
        f"📅 {format_short_deadline(task.deadline, now)} · 👤 {_assignee(task)}"
    )


def format_mobile_stats(stats: WorkspaceStats) -> str:
    return (
        f"📊 Задачи: {stats.total_tasks}\n"
        f"✅ Выполнено: {stats.completed}\n"
        f"🔄 Активных: {stats.active}\n"
        f"⚠️ Просрочено: {stats.overdue}"
    )


def chunk_buttons(buttons: Iterable[T], per_row: int = 2) -> List[List[T]]:
    """Lay buttons out in rows of `per_row`."""
    rows: List[List[T]] = []
    for button in buttons:
        if not rows or len(rows[-1]) >= per_row:
            rows.append([])
        rows[-1].append(button)
    return rows
