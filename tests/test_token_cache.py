import threading

from storefront.infrastructure.token_cache import TokenCache

class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

class Login:
    def __init__(self, *tokens, wait_for=None):
        self.tokens = list(tokens)
        self.wait_for = wait_for
        self.calls = 0

    def __call__(self):
        if self.wait_for is not None:
            self.wait_for.wait(timeout=1)
        self.calls += 1
        return self.tokens[min(self.calls, len(self.tokens)) - 1]

def test_token_is_fetched_once_until_expiry():
    clock = Clock()
    login = Login("tok-1", "tok-2")
    cache = TokenCache(login, ttl_seconds=60, timer=clock)

    assert cache.get_valid_token() == "tok-1"
    clock.now = 59
    assert cache.get_valid_token() == "tok-1"
    clock.now = 61
    assert cache.get_valid_token() == "tok-2"
    assert login.calls == 2

def test_invalidate_forces_refresh():
    login = Login("tok-1", "tok-2")
    cache = TokenCache(login, ttl_seconds=60)

    cache.get_valid_token()
    cache.invalidate()

    assert cache.get_valid_token() == "tok-2"
    assert login.calls == 2

def test_concurrent_callers_share_one_refresh():
    started = threading.Event()
    login = Login("tok", wait_for=started)
    cache = TokenCache(login, ttl_seconds=60)
    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get_valid_token())) for _ in range(8)]
    for thread in threads:
        thread.start()
    started.set()
    for thread in threads:
        thread.join()

    assert results == ["tok"] * 8
    assert login.calls == 1

def test_failed_refresh_is_not_cached():
    attempts = []

    def flaky_login():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("login down")
        return "tok"

    cache = TokenCache(flaky_login, ttl_seconds=60)
    try:
        cache.get_valid_token()
    except RuntimeError:
        pass
    assert cache.get_valid_token() == "tok"
    assert cache.get_valid_token() == "tok"
    assert len(attempts) == 2
