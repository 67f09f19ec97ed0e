import io

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import Http404, HttpResponse
from django.utils import timezone
from django.views.generic import View

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..services.journey import DevelopmentJourney

TABLE_STYLE = [
    ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#e5e7eb')),
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#374151')),
    ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, 0), 11),
    ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
    ('FONTSIZE', (0, 1), (-1, -1), 9),
    ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
    ('GRID', (0, 0), (-1, -1), 1, colors.HexColor('#d1d5db')),
    ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
]


def _truncate(text, length):
    text = text or ''
    return text[:length] + ('...' if len(text) > length else '')


def _skill_rows(node, depth=0):
    if node is None:
        return []
    rows = [['    ' * depth + node['name'], str(node['level']), f"{node['progress']}%"]]
    for child in node.get('children', []):
        rows.extend(_skill_rows(child, depth + 1))
    return rows


class PlanReportPdfView(LoginRequiredMixin, View):
    """Download a development plan as a PDF report."""

    def get(self, request, plan_id, *args, **kwargs):
        journey = DevelopmentJourney(request.user)
        journey.refresh()
        plan = journey.get_plan(plan_id)
        if plan is None:
            raise Http404("Plan not found")

        buffer = self._generate_plan_pdf(plan)
        response = HttpResponse(buffer.getvalue(), content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="plano_{plan["id"]}.pdf"'
        return response

    def _generate_plan_pdf(self, plan):
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=60, leftMargin=60,
                                topMargin=60, bottomMargin=30)
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            'PlanTitle', parent=styles['Heading1'], fontSize=22, spaceAfter=20,
            alignment=TA_CENTER, textColor=colors.HexColor('#2563eb'),
        )
        section_style = ParagraphStyle(
            'Section', parent=styles['Heading2'], fontSize=14, spaceBefore=18, spaceAfter=8,
            textColor=colors.HexColor('#1e40af'),
        )

        story = [
            Paragraph(plan['title'], title_style),
            Paragraph(plan.get('description') or '', styles['Normal']),
            Spacer(1, 8),
            Paragraph(
                f"Início: {plan['startDate']:%d/%m/%Y} · Meta: {plan['targetDate']:%d/%m/%Y} · "
                f"Progresso: {plan['progress']}%",
                styles['Normal'],
            ),
        ]

        story.append(Paragraph("Marcos", section_style))
        milestones = [['Marco', 'Prazo', 'Status']]
        for milestone in plan['milestones']:
            if milestone['completed']:
                status = 'Concluído'
            elif milestone.get('isLocked'):
                status = 'Bloqueado'
            else:
                status = 'Pendente'
            due = milestone.get('dueDate')
            milestones.append([_truncate(milestone['title'], 50), f"{due:%d/%m/%Y}" if due else '-', status])
        story.append(self._table(milestones, [3.6 * inch, 1.2 * inch, 1.2 * inch]))

        story.append(Paragraph("Hábitos", section_style))
        habits = [['Hábito', 'Frequência', 'Sequência']]
        for habit in plan['habits']:
            frequency = 'Diário' if habit['frequency'] == 'daily' else 'Semanal'
            habits.append([_truncate(habit['title'], 50), frequency, str(habit['streak'])])
        story.append(self._table(habits, [3.6 * inch, 1.2 * inch, 1.2 * inch]))

        story.append(Paragraph("Árvore de habilidades", section_style))
        skills = [['Habilidade', 'Nível', 'Progresso']] + _skill_rows(plan['skillTree'])
        story.append(self._table(skills, [3.6 * inch, 1.2 * inch, 1.2 * inch]))

        footer_style = ParagraphStyle(
            'Footer', parent=styles['Normal'], fontSize=8, alignment=TA_CENTER,
            textColor=colors.HexColor('#6b7280'),
        )
        story.append(Spacer(1, 30))
        story.append(Paragraph(f"Gerado em {timezone.localtime():%d/%m/%Y %H:%M}", footer_style))

        doc.build(story)
        buffer.seek(0)
        return buffer

    @staticmethod
    def _table(rows, col_widths):
        table = Table(rows, colWidths=col_widths)
        table.setStyle(TableStyle(TABLE_STYLE))
        return table
