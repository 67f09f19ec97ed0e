from django.contrib.auth.models import User
from django.test import TestCase

from personal.models import StoredDocument
from personal.storage import LocalRepository, MemoryStore


class LocalRepositoryTestCase(TestCase):

    def test_values_are_namespaced(self):
        store = MemoryStore()
        diary = LocalRepository(store, 'diary')
        rewards = LocalRepository(store, 'rewards')
        diary.save('entries', [{'id': '1'}])
        rewards.save('entries', [])

        self.assertEqual(diary.load('entries'), [{'id': '1'}])
        self.assertEqual(rewards.load('entries'), [])
        self.assertEqual(sorted(store.keys()), ['diary:entries', 'rewards:entries'])

    def test_missing_and_unreadable_values_fall_back_to_default(self):
        repository = LocalRepository(MemoryStore({'ns:broken': '{not json'}), 'ns')
        self.assertEqual(repository.load('missing', []), [])
        self.assertIsNone(repository.load('broken'))

    def test_clear_only_touches_its_namespace(self):
        store = MemoryStore({'a:1': '1', 'a:2': '2', 'b:1': '3'})
        LocalRepository(store, 'a').clear()
        self.assertEqual(store.keys(), ['b:1'])

    def test_document_store_persists_per_user(self):
        alice = User.objects.create_user(username='alice', password='x')
        bob = User.objects.create_user(username='bob', password='x')
        LocalRepository.for_user(alice, 'diary').save('entries', ['hello'])

        self.assertEqual(LocalRepository.for_user(alice, 'diary').load('entries'), ['hello'])
        self.assertIsNone(LocalRepository.for_user(bob, 'diary').load('entries'))
        self.assertTrue(StoredDocument.objects.filter(user=alice, key='diary:entries').exists())

        LocalRepository.for_user(alice, 'diary').remove('entries')
        self.assertFalse(StoredDocument.objects.filter(user=alice).exists())
