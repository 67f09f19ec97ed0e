import uuid
from datetime import date
from unittest.mock import patch

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase

from development.models import DevelopmentPlan, Milestone
from development.services.gateway import GatewayError, PersistenceGateway


class PersistenceGatewayTestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='gateway', password='testpass123')
        self.gateway = PersistenceGateway()
        self.plan_id = uuid.uuid4()
        self.gateway.table('development_plans').insert({
            'id': self.plan_id, 'user_id': self.user.id, 'title': 'Plano', 'category': 'other',
            'start_date': date(2026, 1, 1), 'target_date': date(2026, 6, 1), 'progress': 0,
        }).unwrap()

    def _milestone(self, title, completed=False):
        return {'id': uuid.uuid4(), 'plan_id': self.plan_id, 'title': title, 'completed': completed}

    def test_insert_returns_rows_in_order(self):
        rows = [self._milestone('a'), self._milestone('b')]
        inserted = self.gateway.table('milestones').insert(rows).unwrap()
        self.assertEqual([row['title'] for row in inserted], ['a', 'b'])
        self.assertEqual(Milestone.objects.count(), 2)

    def test_select_with_list_filter_uses_membership(self):
        first, second = self._milestone('a'), self._milestone('b')
        self.gateway.table('milestones').insert([first, second, self._milestone('c')]).unwrap()
        rows = self.gateway.table('milestones').select(id=[first['id'], second['id']]).unwrap()
        self.assertEqual({row['title'] for row in rows}, {'a', 'b'})

    def test_update_returns_updated_rows(self):
        row = self._milestone('a')
        self.gateway.table('milestones').insert(row).unwrap()
        updated = self.gateway.table('milestones').update({'completed': True}, id=row['id']).unwrap()
        self.assertTrue(updated[0]['completed'])

    def test_update_and_delete_require_filters(self):
        response = self.gateway.table('milestones').update({'completed': True})
        self.assertFalse(response.ok)
        self.assertEqual(response.error.code, 'MissingFilter')
        self.assertFalse(self.gateway.table('milestones').delete().ok)

    def test_delete_cascades_and_returns_deleted_rows(self):
        self.gateway.table('milestones').insert(self._milestone('a')).unwrap()
        deleted = self.gateway.table('development_plans').delete(id=self.plan_id).unwrap()
        self.assertEqual(len(deleted), 1)
        self.assertFalse(DevelopmentPlan.objects.exists())
        self.assertFalse(Milestone.objects.exists())

    def test_database_errors_come_back_on_the_response(self):
        with patch.object(Milestone.objects, 'filter', side_effect=DatabaseError('db down')):
            response = self.gateway.table('milestones').select(plan_id=self.plan_id)
        self.assertFalse(response.ok)
        self.assertEqual(response.error.code, 'DatabaseError')
        with self.assertRaises(GatewayError):
            response.unwrap()

    def test_unknown_column_is_an_error_not_an_exception(self):
        response = self.gateway.table('milestones').select(nonexistent=1)
        self.assertEqual(response.error.code, 'FieldError')

    def test_unknown_table_raises(self):
        with self.assertRaises(GatewayError) as ctx:
            self.gateway.table('goals')
        self.assertEqual(ctx.exception.code, 'UnknownTable')
