import math
from collections import Counter, deque

class RouteStats:
    """Keep the last N latencies (ms) and a status histogram per route."""
    def __init__(self, capacity: int = 1000):
        self.capacity = capacity
        self.latencies: dict[str, deque[int]] = {}
        self.statuses: dict[str, Counter[int]] = {}

    def add(self, route: str, latency_ms: int, status: int):
        dq = self.latencies.setdefault(route, deque(maxlen=self.capacity))
        dq.append(latency_ms)
        self.statuses.setdefault(route, Counter())[status] += 1

    def summary(self, route: str) -> dict[str, object]:
        arr = sorted(self.latencies.get(route, ()))
        n = len(arr)
        statuses = {str(k): v for k, v in sorted(self.statuses.get(route, Counter()).items())}
        if n == 0:
            return {"p50": 0.0, "p95": 0.0, "p99": 0.0, "max": 0.0, "count": 0, "status": statuses}

        def pick(p: float) -> float:
            idx = max(0, min(n - 1, math.ceil(p * n) - 1))
            return float(arr[idx])

        return {
            "p50": pick(0.50),
            "p95": pick(0.95),
            "p99": pick(0.99),
            "max": float(arr[-1]),
            "count": n,
            "status": statuses,
        }

    def snapshot(self) -> dict[str, dict[str, object]]:
        return {route: self.summary(route) for route in sorted(self.latencies)}
