import copy

import pytest

import sleepdebt


class MemoryStore:
    """In-memory stand-in for JsonStore that keeps a copy of every save."""

    def __init__(self, store=None):
        self.store = store or sleepdebt.Store()
        self.saves = []

    def load(self):
        return copy.deepcopy(self.store)

    def save(self, store):
        self.store = copy.deepcopy(store)
        self.saves.append(copy.deepcopy(store))


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def answers(monkeypatch):
    """Script the replies to input(). KeyboardInterrupt in the list is raised."""
    scripted = []

    def fake_input(prompt=''):
        if not scripted:
            raise AssertionError(f"unexpected prompt: {prompt!r}")
        reply = scripted.pop(0)
        if isinstance(reply, BaseException) or (isinstance(reply, type) and issubclass(reply, BaseException)):
            raise reply
        return reply

    monkeypatch.setattr('builtins.input', fake_input)
    return scripted


@pytest.fixture
def console():
    return sleepdebt.Console(color=False)
