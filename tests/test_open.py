"""Tests for opening, creating and expiring stores."""

import time

import pytest

from jsonstore import DEFAULT_TTL, Store, StoreConfig, open_store


class TestFreshOpen:
    def test_creates_file_with_metadata(self, make_store, store_path, read_doc, clock):
        make_store()
        assert store_path.exists()
        assert read_doc() == {'__timestamp': clock.now, '__ttl': DEFAULT_TTL}

    def test_default_ttl_is_fifteen_minutes(self, store):
        assert store.metadata.ttl == 900_000

    def test_configured_ttl(self, make_store, read_doc):
        make_store(ttl=5000)
        assert read_doc()['__ttl'] == 5000

    def test_timestamp_close_to_now_with_real_clock(self, store_path, read_doc):
        before = int(time.time() * 1000)
        Store.open(path=store_path)
        after = int(time.time() * 1000)
        assert before <= read_doc()['__timestamp'] <= after

    def test_creates_missing_parent_directories(self, tmp_path, clock):
        path = tmp_path / 'nested' / 'deeper' / 'store.json'
        Store.open(path=path, clock=clock)
        assert path.is_file()

    def test_fresh_store_is_empty(self, store):
        assert store.keys() == []
        assert len(store) == 0

    def test_open_store_shorthand(self, store_path, clock):
        store = open_store(path=store_path, clock=clock)
        assert isinstance(store, Store)
        assert store.path == store_path

    def test_accepts_config_object(self, store_path, clock, read_doc):
        config = StoreConfig(path=store_path, ttl=1234)
        store = Store.open(config, clock=clock)
        assert store.config is config
        assert read_doc()['__ttl'] == 1234

    def test_keyword_overrides_config(self, store_path, tmp_path, clock):
        config = StoreConfig(path=tmp_path / 'other.json', ttl=1234)
        store = Store.open(config, path=store_path, clock=clock)
        assert store.path == store_path
        assert store.config.ttl == 1234
        assert not (tmp_path / 'other.json').exists()


class TestDefaultPath:
    def test_defaults_to_data_dir_under_cwd(self, tmp_path, monkeypatch, clock):
        monkeypatch.chdir(tmp_path)
        store = Store.open(clock=clock)
        assert store.path == tmp_path / 'data' / 'store.json'
        assert store.path.is_file()

    def test_env_path(self, tmp_path, monkeypatch, clock):
        path = tmp_path / 'from-env.json'
        monkeypatch.setenv('JSONSTORE_PATH', str(path))
        store = Store.open(clock=clock)
        assert store.path == path
        assert path.is_file()

    def test_path_resolved_at_construction(self, tmp_path, monkeypatch, clock):
        monkeypatch.chdir(tmp_path)
        store = Store.open(path='relative.json', clock=clock)
        elsewhere = tmp_path / 'elsewhere'
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        store.set('a', 1)
        assert (tmp_path / 'relative.json').is_file()
        assert not (elsewhere / 'relative.json').exists()


class TestReopen:
    def test_data_survives_reopen(self, make_store):
        make_store().set('persist', {'nested': 'data'})
        assert make_store().get('persist') == {'nested': 'data'}

    def test_reopen_keeps_timestamp(self, make_store, read_doc, clock):
        make_store()
        created = read_doc()['__timestamp']
        clock.advance(1000)
        make_store()
        assert read_doc()['__timestamp'] == created

    def test_reopen_with_different_ttl_keeps_stored_ttl(self, make_store, read_doc):
        make_store(ttl=5000)
        make_store(ttl=100)
        assert read_doc()['__ttl'] == 5000


class TestExpiry:
    def test_expired_store_is_reset(self, make_store, write_doc, read_doc, clock):
        write_doc({'__timestamp': clock.now - 1000, '__ttl': 100, 'user': 'x'})
        store = make_store(ttl=100)
        assert not store.has('user')
        assert read_doc() == {'__timestamp': clock.now, '__ttl': 100}

    def test_expiry_after_clock_advances(self, make_store, clock):
        make_store(ttl=100).set('a', 1)
        clock.advance(101)
        assert not make_store(ttl=100).has('a')

    def test_age_equal_to_ttl_is_not_expired(self, make_store, clock):
        make_store(ttl=100).set('a', 1)
        clock.advance(100)
        assert make_store(ttl=100).get('a') == 1

    def test_stored_ttl_governs_expiry(self, make_store, write_doc, clock):
        write_doc({'__timestamp': clock.now - 1000, '__ttl': 5000, 'user': 'x'})
        store = make_store(ttl=100)
        assert store.get('user') == 'x'

    def test_reset_uses_configured_ttl(self, make_store, write_doc, read_doc, clock):
        write_doc({'__timestamp': clock.now - 1000, '__ttl': 100})
        make_store(ttl=7000)
        assert read_doc()['__ttl'] == 7000

    def test_missing_metadata_counts_as_expired(self, make_store, write_doc, read_doc, clock):
        write_doc({'a': 1})
        store = make_store()
        assert not store.has('a')
        assert read_doc() == {'__timestamp': clock.now, '__ttl': DEFAULT_TTL}

    def test_non_numeric_metadata_counts_as_zero(self, make_store, write_doc):
        write_doc({'__timestamp': 'yesterday', '__ttl': 900_000, 'a': 1})
        assert not make_store().has('a')

    def test_expiry_only_checked_at_open(self, make_store, clock):
        store = make_store(ttl=100)
        store.set('a', 1)
        clock.advance(10_000)
        assert store.get('a') == 1
