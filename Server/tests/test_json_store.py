import json
import threading

from sudoku_server.config import STORE_COLLECTIONS
from sudoku_server.store.json_store import JsonStore


def test_missing_file_yields_every_collection(tmp_path):
    store = JsonStore(str(tmp_path / 'absent.json'))
    data = store.read()
    assert set(STORE_COLLECTIONS) <= set(data)
    assert all(data[name] == [] for name in STORE_COLLECTIONS)
    store.close()


def test_missing_collections_are_restored(tmp_path):
    path = tmp_path / 'db.json'
    path.write_text(json.dumps({'users': [{'id': 'u1'}], 'rooms': 'corrupt'}), encoding='utf-8')
    store = JsonStore(str(path))

    data = store.read()

    assert data['users'] == [{'id': 'u1'}]
    assert data['rooms'] == []
    assert data['challenges'] == []
    store.close()


def test_transaction_persists_on_exit(store):
    with store.transaction() as data:
        data['puzzles'].append({'id': 'p1'})
    store.flush()

    reloaded = json.loads(store.path.read_text(encoding='utf-8'))
    assert reloaded['puzzles'] == [{'id': 'p1'}]


def test_transaction_commits_nothing_when_block_raises(store):
    with store.transaction() as data:
        data['puzzles'].append({'id': 'kept'})

    try:
        with store.transaction() as data:
            data['puzzles'].append({'id': 'dropped'})
            raise ValueError('guard failed')
    except ValueError:
        pass

    with store.snapshot() as data:
        assert [p['id'] for p in data['puzzles']] == ['kept']


def test_concurrent_transactions_all_land_in_the_file(store):
    def worker(index):
        with store.transaction() as data:
            data['puzzles'].append({'id': f'p{index}'})

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(25)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    store.flush()

    reloaded = json.loads(store.path.read_text(encoding='utf-8'))
    assert sorted(p['id'] for p in reloaded['puzzles']) == sorted(f'p{i}' for i in range(25))


def test_failed_write_is_logged_and_memory_stays_ahead(store, monkeypatch, caplog):
    def refuse(src, dst):
        raise PermissionError('read-only volume')

    monkeypatch.setattr('sudoku_server.store.json_store.os.replace', refuse)

    with caplog.at_level('ERROR', logger='sudoku_server'):
        with store.transaction() as data:
            data['puzzles'].append({'id': 'p1'})
        store.flush()

    assert store.write_failed
    assert not store.path.exists()
    assert any('database write' in record.getMessage() for record in caplog.records)

    with store.snapshot() as data:
        assert data['puzzles'] == [{'id': 'p1'}]

    monkeypatch.undo()
    with store.transaction() as data:
        data['puzzles'].append({'id': 'p2'})
    store.flush()

    assert not store.write_failed
    reloaded = json.loads(store.path.read_text(encoding='utf-8'))
    assert [p['id'] for p in reloaded['puzzles']] == ['p1', 'p2']
