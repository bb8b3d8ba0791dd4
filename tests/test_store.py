import json

import pytest

import sleepdebt
from sleepdebt import JsonStore, Profile, SleepRecord, Store, StorageError


def make_store():
    return Store(
        profile=Profile(name='Ada', age=30, avg_sleep=7.5, wake_up_time='07:00', ideal_sleep=8.0),
        history=[
            SleepRecord('2026-10-01', 6.0, 2.0),
            SleepRecord('2026-10-02', 9.0, 0.5),
        ],
    )


def test_missing_file_is_empty_store(tmp_path):
    store = JsonStore(tmp_path / 'sleep_data.json').load()
    assert store == Store(profile=None, history=[])


def test_save_then_load_round_trip(tmp_path):
    persistence = JsonStore(tmp_path / 'sleep_data.json')
    persistence.save(make_store())
    assert persistence.load() == make_store()


def test_file_layout_uses_camel_case_keys(tmp_path):
    path = tmp_path / 'sleep_data.json'
    JsonStore(path).save(make_store())
    text = path.read_text(encoding='utf-8')
    data = json.loads(text)

    assert '\n  "profile"' in text  # pretty-printed
    assert data['profile'] == {
        'name': 'Ada', 'age': 30, 'avgSleep': 7.5, 'wakeUpTime': '07:00', 'idealSleep': 8.0,
    }
    assert data['history'][0] == {'date': '2026-10-01', 'totalSleep': 6.0, 'sleepDebt': 2.0}


def test_loads_file_written_by_original_tool(tmp_path):
    # Age and hours arrive as strings/ints from the original prompts.
    path = tmp_path / 'sleepData.json'
    path.write_text(json.dumps({
        'profile': {'name': 'Sam', 'age': 70, 'avgSleep': '6.5', 'wakeUpTime': '06:30', 'idealSleep': 7},
        'history': [{'date': '2026-10-01', 'totalSleep': 6, 'sleepDebt': 1}],
    }), encoding='utf-8')

    store = JsonStore(path).load()
    assert store.profile.avg_sleep == 6.5
    assert store.profile.ideal_sleep == 7.0
    assert store.history == [SleepRecord('2026-10-01', 6.0, 1.0)]


def test_empty_profile_with_history(tmp_path):
    path = tmp_path / 'sleep_data.json'
    path.write_text('{"profile": null, "history": []}', encoding='utf-8')
    assert JsonStore(path).load() == Store()


def test_corrupt_json_raises_storage_error(tmp_path):
    path = tmp_path / 'sleep_data.json'
    path.write_text('{"profile": ', encoding='utf-8')
    with pytest.raises(StorageError) as excinfo:
        JsonStore(path).load()
    assert excinfo.value.path == path
    assert 'invalid JSON' in str(excinfo.value)


@pytest.mark.parametrize("content", [
    '[]',
    '{"profile": {"name": "x"}, "history": []}',
    '{"profile": null, "history": [{"date": "2026-10-01"}]}',
    '{"profile": null, "history": [1, 2]}',
])
def test_malformed_data_raises_storage_error(tmp_path, content):
    path = tmp_path / 'sleep_data.json'
    path.write_text(content, encoding='utf-8')
    with pytest.raises(StorageError):
        JsonStore(path).load()


def test_unwritable_location_raises_storage_error(tmp_path):
    persistence = JsonStore(tmp_path / 'missing-dir' / 'sleep_data.json')
    with pytest.raises(StorageError) as excinfo:
        persistence.save(make_store())
    assert 'cannot write' in excinfo.value.reason


def test_render_debt_chart_writes_png(tmp_path):
    pytest.importorskip('matplotlib')
    pytest.importorskip('numpy')
    path = tmp_path / 'debt.png'
    sleepdebt.render_debt_chart(make_store().history, path)
    assert path.read_bytes()[:8] == b'\x89PNG\r\n\x1a\n'
