import threading
import time
from decimal import Decimal
from unittest.mock import patch

from django.db import connection
from django.test import SimpleTestCase, TransactionTestCase

from questionnaires import locks
from questionnaires.locks import keyed_lock, submission_lock
from questionnaires.models import Answer, Attempt
from questionnaires.services import AttemptService
from .base import AFTER_END, FixedClock, QuestionnaireFixtureMixin, make_user


class KeyedLockTests(SimpleTestCase):
    """Tests for the process-local keyed lock."""

    def test_same_key_serializes(self):
        """Two holders of one key never overlap."""
        events = []

        def worker(name):
            with keyed_lock(('submit', 1, 1, 1)):
                events.append(f'{name}-in')
                time.sleep(0.05)
                events.append(f'{name}-out')

        threads = [threading.Thread(target=worker, args=(n,)) for n in ('a', 'b')]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(events), 4)
        self.assertTrue(events[0].endswith('-in'))
        self.assertEqual(events[1], events[0].replace('-in', '-out'))

    def test_different_keys_do_not_block(self):
        """Holding one key does not block another."""
        with keyed_lock(('submit', 1, 1, 1)):
            acquired = threading.Event()

            def worker():
                with keyed_lock(('submit', 2, 1, 1)):
                    acquired.set()

            thread = threading.Thread(target=worker)
            thread.start()
            thread.join(timeout=1)
            self.assertTrue(acquired.is_set())

    def test_released_keys_leave_the_registry(self):
        """Locks for keys nobody holds are dropped."""
        before = len(locks._keyed_locks)
        for attempt_id in range(1000):
            with keyed_lock(('submit', attempt_id, 1, 1)):
                pass
        self.assertEqual(len(locks._keyed_locks), before)

    def test_waiting_holder_keeps_the_lock(self):
        """The lock survives the first release while another thread still waits."""
        key = ('submit', 7, 7, 7)
        entered = threading.Event()

        def worker():
            with keyed_lock(key):
                entered.set()

        with keyed_lock(key):
            thread = threading.Thread(target=worker)
            thread.start()
            # Wait until the worker has registered as a holder.
            for _ in range(100):
                if locks._keyed_locks[key][1] == 2:
                    break
                time.sleep(0.01)
            self.assertEqual(locks._keyed_locks[key][1], 2)
            self.assertFalse(entered.is_set())

        thread.join(timeout=1)
        self.assertTrue(entered.is_set())
        self.assertNotIn(key, locks._keyed_locks)

    def test_submission_lock_falls_back_without_row_locks(self):
        """Without SELECT FOR UPDATE the keyed lock is held."""
        with patch.object(connection.features, 'has_select_for_update', False):
            with patch('questionnaires.locks.keyed_lock') as mocked:
                with submission_lock(1, 2, 3):
                    pass
        mocked.assert_called_once_with(('submit', 1, 2, 3))

    def test_submission_lock_uses_row_locks_when_available(self):
        """With SELECT FOR UPDATE no process lock is taken."""
        with patch.object(connection.features, 'has_select_for_update', True):
            with patch('questionnaires.locks.keyed_lock') as mocked:
                with submission_lock(1, 2, 3):
                    pass
        mocked.assert_not_called()


class ConcurrentSubmitTests(QuestionnaireFixtureMixin, TransactionTestCase):
    """Concurrent submits of one attempt score it exactly once."""

    workers = 4

    def setUp(self):
        self.learner = make_user('learner')
        self.create_course()
        self.create_questionnaire()
        self.enroll(self.learner)
        AttemptService(self.learner, clock=FixedClock(AFTER_END)).start(
            self.questionnaire.pk, self.course_class.pk
        )

    def submit_in_parallel(self):
        outcomes = []
        errors = []
        ready = threading.Barrier(self.workers)

        def worker():
            try:
                service = AttemptService(self.learner, clock=FixedClock(AFTER_END))
                ready.wait(timeout=5)
                outcomes.append(service.submit(
                    self.questionnaire.pk, self.course_class.pk, self.half_right_answers()
                ))
            except Exception as exc:
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(self.workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes, errors

    def assert_scored_once(self, outcomes, errors):
        self.assertEqual(errors, [])
        self.assertEqual(len(outcomes), self.workers)
        self.assertEqual(sum(1 for o in outcomes if not o.already_submitted), 1)
        self.assertEqual({o.attempt_id for o in outcomes}, {Attempt.objects.get().pk})
        self.assertEqual({o.score for o in outcomes}, {Decimal('50.00')})
        self.assertEqual(Attempt.objects.filter(status=Attempt.Status.SUBMITTED).count(), 1)
        self.assertEqual(Answer.objects.count(), 2)

    def test_parallel_submits(self):
        """Whatever the backend offers, only one submit scores the attempt."""
        self.assert_scored_once(*self.submit_in_parallel())

    def test_parallel_submits_with_process_lock(self):
        """Without row locks the keyed process lock keeps submits apart."""
        features_class = type(connection.features)
        with patch.object(features_class, 'has_select_for_update', False):
            self.assert_scored_once(*self.submit_in_parallel())
