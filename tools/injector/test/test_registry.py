import threading

from tools.injector.registry import StyleRegistry


class TestStyleRegistry:

    def test_first_insertion_order(self):
        reg = StyleRegistry()
        reg.add("/app/b.css")
        reg.add("/app/a.css")
        assert reg.list() == ["/app/b.css", "/app/a.css"]

    def test_duplicates_suppressed(self):
        reg = StyleRegistry()
        assert reg.add("/app/a.css") is True
        assert reg.add("/app/a.css") is False
        assert reg.list() == ["/app/a.css"]
        assert len(reg) == 1
        assert "/app/a.css" in reg

    def test_reset(self):
        reg = StyleRegistry()
        reg.add("/app/a.css")
        reg.reset()
        assert reg.list() == []
        assert len(reg) == 0

    def test_list_is_a_copy(self):
        reg = StyleRegistry()
        reg.add("/app/a.css")
        reg.list().append("/app/b.css")
        assert reg.list() == ["/app/a.css"]

    def test_concurrent_add(self):
        reg = StyleRegistry()
        paths = [f"/app/{i % 10}.css" for i in range(200)]

        def worker(chunk):
            for p in chunk:
                reg.add(p)

        threads = [threading.Thread(target=worker, args=(paths[i::4],)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(reg.list()) == sorted({p for p in paths})
