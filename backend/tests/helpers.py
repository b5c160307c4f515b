import asyncio

from redis.exceptions import LockError

from zippath.schemas import ClueValue, Coordinate, Level, Wall


class FakeLock:
    def __init__(self, lock, blocking_timeout=None):
        self.lock = lock
        self.blocking_timeout = blocking_timeout

    async def __aenter__(self):
        try:
            await asyncio.wait_for(self.lock.acquire(), self.blocking_timeout)
        except asyncio.TimeoutError:
            raise LockError("Unable to acquire lock within the time specified")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.lock.release()


class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio calls the app makes.

    With yield_on_io=True every read and write gives control back to the
    event loop, so concurrent coroutines interleave the way they would
    against a real server.
    """

    def __init__(self, yield_on_io=False):
        self.data = {}
        self.expiry = {}
        self.locks = {}
        self.yield_on_io = yield_on_io

    async def _io(self):
        if self.yield_on_io:
            await asyncio.sleep(0)

    async def get(self, key):
        value = self.data.get(key)
        await self._io()
        return value

    async def set(self, key, value, ex=None):
        await self._io()
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        await self._io()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    def lock(self, name, timeout=None, blocking_timeout=None):
        if name not in self.locks:
            self.locks[name] = asyncio.Lock()
        return FakeLock(self.locks[name], blocking_timeout)


def C(row, col):
    return Coordinate(row=row, col=col)


def make_level(rows, cols, clues, walls=(), level_id="test", difficulty="easy"):
    """clues: {(row, col): value}; walls: [(row, col, orientation)]."""
    return Level(
        id=level_id,
        rows=rows,
        cols=cols,
        difficulty=difficulty,
        initial_values=[ClueValue(row=r, col=c, value=v) for (r, c), v in clues.items()],
        walls=[Wall(row=r, col=c, orientation=o) for r, c, o in walls],
    )


def serpentine(rows, cols):
    """Boustrophedon hamiltonian path starting at (0, 0)."""
    path = []
    for r in range(rows):
        cols_order = range(cols) if r % 2 == 0 else range(cols - 1, -1, -1)
        for c in cols_order:
            path.append((r, c))
    return path


class ScriptedRandom:
    """Random source with a fixed list of integers and identity shuffles."""

    def __init__(self, ints, floats=()):
        self.ints = list(ints)
        self.floats = list(floats)

    def next_int(self, min_val, max_val):
        return self.ints.pop(0)

    def next(self):
        return self.floats.pop(0) if self.floats else 0.5

    def shuffle(self, arr):
        return list(arr)

    def token(self, length=6):
        return "scripted"
