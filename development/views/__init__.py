# Re-export the views so urls.py can keep referring to `views.<name>`

from .plan_views import (
    plan_list,
    plan_create,
    plan_generate,
    plan_delete,
    plan_activate,
    plan_recalculate,
    milestone_create,
    milestone_toggle,
    milestone_edit,
    milestone_delete,
    habit_create,
    habit_complete,
    habit_streak,
    habit_edit,
    habit_delete,
    skill_create,
    skill_edit,
    skill_progress,
    skill_delete,
)

from .sophia_views import (
    sophia_history,
    sophia_chat,
    sophia_clear,
)

from .pdf_views import PlanReportPdfView
