"""
Unit tests for the table-API backend specifics:

1. TableApiClient: URL / params / headers, HTTP and network failures -> StorageError
2. TableApiStorage.atomic(): compensations run newest-first, nested blocks join
3. factory: backend selection from settings, open_storage() always closes
"""
import logging
from unittest.mock import MagicMock

import pytest
import requests
from django.utils import timezone

from mealflow.exceptions import StorageError
from mealflow.services import create_meal_request
from mealflow.storage import get_storage, open_storage
from mealflow.storage.django_orm import DjangoStorage
from mealflow.storage.table_api import TableApiClient, TableApiStorage, eq, in_
from tests.fakes import FakeResponse, FakeTableApiSession


# -------------------------------------------------------------------
# Client
# -------------------------------------------------------------------

class TestTableApiClient:

    def test_select_builds_postgrest_query(self):
        session = MagicMock()
        session.request.return_value = FakeResponse(200, [{'id': 'a'}])
        client = TableApiClient('http://db.test/rest/v1/', api_key='secret', timeout=3, session=session)

        rows = client.select('trays', {'id': eq('a')}, order='created_at.desc')

        assert rows == [{'id': 'a'}]
        session.request.assert_called_once_with(
            'GET',
            'http://db.test/rest/v1/trays',
            params={'select': '*', 'id': 'eq.a', 'order': 'created_at.desc'},
            json=None,
            headers={'Accept': 'application/json', 'apikey': 'secret', 'Authorization': 'Bearer secret'},
            timeout=3,
        )

    def test_writes_ask_for_representation(self):
        session = MagicMock()
        session.request.return_value = FakeResponse(201, [{'id': 'a'}])
        client = TableApiClient('http://db.test', session=session)

        client.insert('patients', [{'name': 'Ada'}])

        headers = session.request.call_args.kwargs['headers']
        assert headers['Prefer'] == 'return=representation'
        assert 'apikey' not in headers

    def test_in_filter(self):
        assert in_(['a', 'b']) == 'in.(a,b)'

    def test_http_error_raises_storage_error(self, caplog):
        session = MagicMock()
        session.request.return_value = FakeResponse(503, {'message': 'down'})
        client = TableApiClient('http://db.test', session=session)

        with caplog.at_level(logging.ERROR, logger='mealflow'):
            with pytest.raises(StorageError) as exc_info:
                client.select('recipes')

        assert exc_info.value.detail == {'status': 503, 'table': 'recipes'}
        assert 'GET recipes -> 503' in caplog.text

    def test_network_error_raises_storage_error(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError('refused')
        client = TableApiClient('http://db.test', session=session)

        with pytest.raises(StorageError) as exc_info:
            client.delete('trays', {'id': eq('a')})

        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_no_content_is_empty(self):
        session = MagicMock()
        session.request.return_value = FakeResponse(204)
        client = TableApiClient('http://db.test', session=session)

        assert client.delete('trays', {'id': eq('a')}) is None
        assert client.select('trays') == []

    def test_non_json_body_raises_storage_error(self, table_api):
        table_api.session.garble('GET', 'patients')

        with pytest.raises(StorageError) as exc_info:
            table_api.storage.patients.get(table_api.add_patient())

        assert exc_info.value.detail == {'status': 200, 'table': 'patients'}
        assert isinstance(exc_info.value.__cause__, ValueError)


# -------------------------------------------------------------------
# Unit of work
# -------------------------------------------------------------------

class TestTableApiAtomic:

    def test_compensations_run_newest_first(self, table_api):
        storage = table_api.storage
        patient_id = table_api.add_patient()

        with pytest.raises(RuntimeError):
            with storage.atomic():
                meal_request = storage.meal_requests.create(patient_id, status='Finalized')
                storage.meal_requests.add_items(meal_request.id, [table_api.add_recipe()])
                raise RuntimeError('abort')

        deletes = [table for method, table, _, _ in table_api.session.calls if method == 'DELETE']
        assert deletes == ['request_items', 'meal_requests']
        assert table_api.count('meal_requests') == 0
        assert table_api.count('request_items') == 0
        assert table_api.count('patients') == 1

    def test_patient_update_restored_on_rollback(self, table_api):
        storage = table_api.storage
        patient_id = table_api.add_patient(diet_order='Regular')

        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.patients.update(patient_id, {'diet_order': 'Renal'})
                raise RuntimeError('abort')

        assert storage.patients.get(patient_id).diet_order == 'Regular'

    def test_tray_transition_reverted_on_rollback(self, table_api):
        storage = table_api.storage
        patient_id = table_api.add_patient()
        request_id = storage.meal_requests.create(patient_id, status='Finalized').id
        tray = storage.trays.create(request_id)

        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.trays.transition(tray.id, 'Preparation Started', 'Accuracy Validated',
                                         'accuracy_validated_at', timezone.now())
                raise RuntimeError('abort')

        reverted = storage.trays.get(tray.id)
        assert reverted.status == 'Preparation Started'
        assert reverted.accuracy_validated_at is None

    def test_nested_block_joins_outer(self, table_api):
        storage = table_api.storage
        patient_id = table_api.add_patient()

        with pytest.raises(RuntimeError):
            with storage.atomic():
                with storage.atomic():
                    storage.meal_requests.create(patient_id, status='Finalized')
                raise RuntimeError('abort')

        assert table_api.count('meal_requests') == 0

    def test_writes_outside_atomic_are_not_compensated(self, table_api):
        storage = table_api.storage
        storage.meal_requests.create(table_api.add_patient(), status='Finalized')

        with pytest.raises(RuntimeError):
            with storage.atomic():
                raise RuntimeError('abort')

        assert table_api.count('meal_requests') == 1

    def test_failed_compensation_is_logged_and_original_error_kept(self, table_api, caplog):
        storage = table_api.storage
        patient_id = table_api.add_patient()
        table_api.session.fail('DELETE', 'meal_requests')

        with caplog.at_level(logging.ERROR, logger='mealflow'):
            with pytest.raises(RuntimeError, match='abort'):
                with storage.atomic():
                    storage.meal_requests.create(patient_id, status='Finalized')
                    raise RuntimeError('abort')

        assert 'compensation failed' in caplog.text

    def test_unexpected_compensation_error_does_not_stop_rollback(self, table_api, caplog):
        storage = table_api.storage
        patient_id = table_api.add_patient()

        def broken_undo():
            raise KeyError('stale journal entry')

        with caplog.at_level(logging.ERROR, logger='mealflow'):
            with pytest.raises(RuntimeError, match='abort'):
                with storage.atomic():
                    storage.meal_requests.create(patient_id, status='Finalized')
                    storage.on_rollback('broken undo', broken_undo)
                    raise RuntimeError('abort')

        assert table_api.count('meal_requests') == 0
        assert 'compensation failed: broken undo' in caplog.text

    def test_garbled_compensation_keeps_original_error(self, table_api):
        patient_id = table_api.add_patient()
        recipe_id = table_api.add_recipe()
        table_api.session.fail('POST', 'trays')
        table_api.session.garble('DELETE', 'request_items')

        with pytest.raises(StorageError) as exc_info:
            create_meal_request(table_api.storage, patient_id, [recipe_id])

        assert exc_info.value.detail == {'status': 500, 'table': 'trays'}
        assert table_api.count('meal_requests') == 0

    @pytest.mark.parametrize('interrupt', [SystemExit(1), KeyboardInterrupt()])
    def test_interrupted_request_rolls_back(self, table_api, monkeypatch, interrupt):
        patient_id = table_api.add_patient()
        recipe_id = table_api.add_recipe()

        def killed(request_id):
            raise interrupt

        monkeypatch.setattr(table_api.storage.trays, 'create', killed)

        with pytest.raises(type(interrupt)):
            create_meal_request(table_api.storage, patient_id, [recipe_id])

        assert table_api.count('meal_requests') == 0
        assert table_api.count('request_items') == 0
        assert table_api.count('trays') == 0


# -------------------------------------------------------------------
# Factory
# -------------------------------------------------------------------

class TestStorageFactory:

    def test_default_backend_is_django(self, settings):
        settings.MEALFLOW_STORAGE_BACKEND = 'django'
        assert isinstance(get_storage(), DjangoStorage)

    def test_table_api_backend(self, settings):
        settings.MEALFLOW_STORAGE_BACKEND = 'table_api'
        settings.TABLE_API_URL = 'http://db.test/rest/v1'
        settings.TABLE_API_KEY = 'secret'

        storage = get_storage()

        assert isinstance(storage, TableApiStorage)
        assert storage.name == 'table_api'
        storage.close()

    def test_table_api_requires_url(self, settings):
        settings.MEALFLOW_STORAGE_BACKEND = 'table_api'
        settings.TABLE_API_URL = ''

        with pytest.raises(ValueError, match='TABLE_API_URL'):
            get_storage()

    def test_unknown_backend(self, settings):
        settings.MEALFLOW_STORAGE_BACKEND = 'mongo'

        with pytest.raises(ValueError, match='Unknown MEALFLOW_STORAGE_BACKEND'):
            get_storage()

    def test_open_storage_closes_on_error(self, monkeypatch):
        session = FakeTableApiSession()
        storage = TableApiStorage(TableApiClient(session.base_url, session=session))
        monkeypatch.setattr('mealflow.storage.factory.get_storage', lambda: storage)

        with pytest.raises(RuntimeError):
            with open_storage():
                raise RuntimeError('view blew up')

        assert session.closed
