"""
Tests for thread safety of the registry and loader caches.

Threads are released together through a barrier so they hit the slow paths
at the same time.
"""

import threading
from unittest.mock import patch

import pytest

NUM_THREADS = 16


def run_concurrently(target, num_threads=NUM_THREADS):
    """Run ``target`` in parallel threads and return (results, errors)."""
    barrier = threading.Barrier(num_threads)
    results = []
    errors = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            value = target()
        except Exception as e:
            with lock:
                errors.append(e)
        else:
            with lock:
                results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(num_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


@pytest.fixture
def slow_loader(samples, services_dir, write_registration, registry):
    write_registration(
        services_dir,
        samples.Greeter,
        "slow=greetpkg.SlowGreeter\nsluggish=greetpkg.SlowGreeter\n",
    )
    return registry.get_extension_loader(samples.Greeter)


class TestConcurrentAccess:
    """Test exactly-once guarantees under contention."""

    def test_instance_created_once(self, samples, slow_loader):
        results, errors = run_concurrently(lambda: slow_loader.get_instance("slow"))

        assert errors == []
        assert len(results) == NUM_THREADS
        assert len({id(r) for r in results}) == 1
        assert samples.SlowGreeter.created == 1

    def test_names_sharing_a_class_create_once(self, samples, slow_loader):
        counter = iter(range(NUM_THREADS))
        names = ["slow", "sluggish"]

        def target():
            return slow_loader.get_instance(names[next(counter) % 2])

        results, errors = run_concurrently(target)

        assert errors == []
        assert len({id(r) for r in results}) == 1
        assert samples.SlowGreeter.created == 1

    def test_discovery_runs_once(self, slow_loader):
        discovery = slow_loader._discovery

        with patch.object(discovery, "discover", wraps=discovery.discover) as mock_discover:
            results, errors = run_concurrently(slow_loader.get_extension_classes)

        assert errors == []
        assert mock_discover.call_count == 1
        assert len({id(r) for r in results}) == 1

    def test_loader_created_once(self, samples, registry):
        results, errors = run_concurrently(lambda: registry.get_extension_loader(samples.Greeter))

        assert errors == []
        assert len({id(r) for r in results}) == 1
        assert registry.loaded_abstractions.count(samples.Greeter) == 1

    def test_unrelated_abstractions(self, samples, services_dir, write_registration, registry):
        write_registration(services_dir, samples.Greeter, "hello=greetpkg.HelloGreeter\n")
        write_registration(services_dir, samples.Farewell, "polite=greetpkg.PoliteFarewell\n")
        counter = iter(range(NUM_THREADS))

        def target():
            if next(counter) % 2:
                return registry.get_extension(samples.Greeter, "hello")
            return registry.get_extension(samples.Farewell, "polite")

        results, errors = run_concurrently(target)

        assert errors == []
        assert len({id(r) for r in results}) == 2


def test_nested_lookup_of_same_abstraction(samples, services_dir, write_registration, registry):
    """A constructor may fetch another provider of its own abstraction."""
    write_registration(
        services_dir,
        samples.Greeter,
        "hello=greetpkg.HelloGreeter\nwrap=greetpkg.WrappingGreeter\n",
    )
    samples.WrappingGreeter.lookup = lambda name: registry.get_extension(samples.Greeter, name)
    outcome = {}

    def fetch():
        outcome["wrap"] = registry.get_extension(samples.Greeter, "wrap")

    thread = threading.Thread(target=fetch, daemon=True)
    thread.start()
    thread.join(timeout=5)

    assert not thread.is_alive(), "nested lookup did not return"
    wrapper = outcome["wrap"]
    assert wrapper.greet("bob") == "<hello bob>"
    assert wrapper.inner is registry.get_extension(samples.Greeter, "hello")
