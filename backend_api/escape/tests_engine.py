from django.test import SimpleTestCase

from escape.puzzles.engine import CallbackQueue, Engine, HostEngine
from escape.puzzles.i18n import normalize_code, normalize_text, resolve_text


class StringResolutionTests(SimpleTestCase):
    def setUp(self):
        self.engine = Engine(
            game_strings={"greet": "Hi {name}", "shared": "from game"},
            engine_strings={"shared": "from engine", "only.engine": "engine {n}"},
        )

    def test_game_table_wins_over_engine_table(self):
        self.assertEqual(self.engine.resolve_string("shared", "fallback"), "from game")

    def test_engine_table_then_fallback(self):
        self.assertEqual(self.engine.resolve_string("only.engine", "x", {"n": 3}), "engine 3")
        self.assertEqual(self.engine.resolve_string("missing", "Hello {who}", {"who": "you"}), "Hello you")

    def test_params_only_touch_the_chosen_template(self):
        self.assertEqual(self.engine.resolve_string("greet", "unused {name}", {"name": "Ada"}), "Hi Ada")
        self.assertEqual(self.engine.resolve_string("greet", ""), "Hi {name}")

    def test_key_fallback_strings(self):
        self.assertEqual(self.engine.text("@shared@Default"), "from game")
        self.assertEqual(self.engine.text("@nope@Default"), "Default")
        self.assertEqual(self.engine.text("plain"), "plain")
        self.assertEqual(self.engine.text(None, "fb"), "fb")
        resolver = lambda key, fallback, params: f"<{key}>"  # noqa: E731
        self.assertEqual(resolve_text(resolver, {"key": "k"}), "<k>")


class AssetResolutionTests(SimpleTestCase):
    def test_absolute_urls_pass_through(self):
        engine = Engine(asset_base="https://cdn.example/assets/")
        for url in ("https://x/y.png", "http://x/y.png", "data:image/png;base64,AA", "/static/a.png"):
            self.assertEqual(engine.resolve_asset(url), url)

    def test_relative_paths_get_the_base(self):
        engine = Engine(asset_base="https://cdn.example/assets/")
        self.assertEqual(engine.resolve_asset("img/a.png"), "https://cdn.example/assets/img/a.png")
        self.assertEqual(engine.resolve_asset("./img/a.png"), "https://cdn.example/assets/img/a.png")

    def test_no_base(self):
        self.assertEqual(Engine().resolve_asset("img/a.png"), "img/a.png")


class NormalizationTests(SimpleTestCase):
    def test_normalize_text(self):
        self.assertEqual(normalize_text("  EuRéKa   now "), "eureka now")

    def test_normalize_code_is_exact(self):
        self.assertEqual(normalize_code(" AbC1 "), " AbC1 ")
        self.assertEqual(normalize_code(1234), "1234")
        self.assertEqual(normalize_code(None), "")


class CallbackQueueTests(SimpleTestCase):
    def test_call_soon_runs_in_fifo_order(self):
        queue = CallbackQueue()
        seen = []
        queue.call_soon(lambda: seen.append(1))
        queue.call_soon(lambda: seen.append(2))
        self.assertEqual(seen, [])
        self.assertEqual(queue.run_pending(), 2)
        self.assertEqual(seen, [1, 2])

    def test_callbacks_scheduled_while_draining_run_in_same_drain(self):
        queue = CallbackQueue()
        seen = []
        queue.call_soon(lambda: queue.call_soon(lambda: seen.append("nested")))
        queue.run_pending()
        self.assertEqual(seen, ["nested"])

    def test_timers_fire_on_advance(self):
        queue = CallbackQueue()
        seen = []
        queue.call_later(500, lambda: seen.append("late"))
        queue.call_later(100, lambda: seen.append("early"))
        queue.advance(99)
        self.assertEqual(seen, [])
        queue.advance(401)
        self.assertEqual(seen, ["early", "late"])
        self.assertEqual(queue.now, 500)

    def test_cancel(self):
        queue = CallbackQueue()
        seen = []
        handle = queue.call_later(10, lambda: seen.append("x"))
        self.assertEqual(queue.pending, 1)
        queue.cancel(handle)
        self.assertEqual(queue.pending, 0)
        queue.advance(20)
        self.assertEqual(seen, [])

    def test_engine_toast_records_messages(self):
        sink = []
        engine = Engine(toast=lambda message, ms: sink.append(message))
        engine.toast("nope", 100)
        self.assertEqual(engine.toasts, [("nope", 100)])
        self.assertEqual(sink, ["nope"])


class HostEngineProtocolTests(SimpleTestCase):
    def test_default_engine_satisfies_the_host_protocol(self):
        self.assertIsInstance(Engine(), HostEngine)
