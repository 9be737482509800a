import time
from pathlib import Path
from typing import Any, Callable, Dict, List

from starlette.testclient import TestClient

from mailserver_lib.accounts import AccountStore, HashCodec
from mailserver_lib.services.container import ServiceContainer

# Salt used for every hash computed in tests
SALT = 'V5oMyA.u8Q2U/g'

MAILTEST = 'mailtest@test.knappi.org'
RAILTEST = 'railtest@test.knappi.org'

# Passwords: mailtest -> 'abc', railtest -> 'abcd'
FIXTURE: Dict[str, str] = {
    MAILTEST: '{SHA512-CRYPT}$6$UeXF8rxTS/a7bHrp$yQaj.9fgyDckIP3pgspd6YKUsyN8K54Am3n5kSpYwFG3C1gHKAM4MlfCcBkJsd5vB/UNAPfUlA6ShOIQa4Vmr/',
    RAILTEST: '{SHA512-CRYPT}$6$y628bqC.aK2m.ncq$/f9ARypMSviNXMD1ZqdFO6B9Vl8O6X.7ZIauNm34bpUCWnDg91C9OgcnQ/7XZh7rCt1JPQfc/g/vpRdWTqbp0/',
}

FIXTURE_ONLY_RAILTEST = {RAILTEST: FIXTURE[RAILTEST]}

EVENTS = ('modified', 'saved', 'loaded', 'authFailed')


def fixed_codec(salt: str = SALT) -> HashCodec:
    return HashCodec(salt_source=lambda: salt)


def hash_for(password: str, salt: str = SALT) -> str:
    return fixed_codec(salt).hash(password)


def fixture_text(accounts: Dict[str, str] = FIXTURE) -> str:
    return ''.join(f'{u}|{h}\n' for u, h in accounts.items())


def write_fixture(path: Path, accounts: Dict[str, str] = FIXTURE) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(fixture_text(accounts), encoding='utf-8')
    return path


def event_counter(store: AccountStore) -> Dict[str, List[tuple]]:
    """Record the arguments of every event emitted by `store`."""
    log: Dict[str, List[tuple]] = {}
    for name in EVENTS:
        log[name] = []
        store.on(name, lambda *args, _name=name: log[_name].append(args))
    return log


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def register_service_on_client(client: TestClient, name: str, instance: Any) -> None:
    """Register a service instance into the app's DI container for tests.

    Usage in tests:
        from tests.helpers import register_service_on_client
        register_service_on_client(client, 'account_store', fake_store)
    """
    container = getattr(client.app.state, 'container', None)
    if container is None:
        container = ServiceContainer()
        client.app.state.container = container

    container.register_singleton(name, instance)
