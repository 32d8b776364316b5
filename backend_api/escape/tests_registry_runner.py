import random

from django.test import SimpleTestCase

from escape.puzzles import (
    BasePuzzle,
    ConfigNotFoundError,
    Engine,
    KindRegistry,
    PuzzleKind,
    PuzzleResult,
    create_element,
    create_puzzle_runner,
    get_kind,
)
from escape.puzzles.kinds import BUILTIN_KINDS, PhrasePuzzle

PHRASE = {"kind": "phrase", "id": "p1", "title": "Password", "solution": "EUREKA"}


def launch(config=None, ref=None, puzzles=None, options=None, **kwargs):
    """Mount a runner into a fresh scene; returns (runner, engine, results, scene)."""
    engine = Engine(puzzles=puzzles, rng=random.Random(7))
    results = []
    runner = create_puzzle_runner(
        config=config,
        ref=ref,
        puzzles_by_id=puzzles,
        instance_options=options,
        engine=engine,
        on_resolve=results.append,
        **kwargs,
    )
    scene = create_element("div", "scene")
    runner.mount_into(scene)
    engine.queue.run_pending()
    return runner, engine, results, scene


class RegistryTests(SimpleTestCase):
    def test_every_builtin_kind_resolves(self):
        for kind in PuzzleKind:
            self.assertIs(get_kind(kind), BUILTIN_KINDS[kind])
            self.assertIs(get_kind(kind.value.upper()), BUILTIN_KINDS[kind])

    def test_unknown_kind_falls_back_to_base(self):
        self.assertIs(get_kind("crossword"), BasePuzzle)
        self.assertIs(get_kind(None), BasePuzzle)

    def test_register_overrides_and_reset_restores(self):
        kinds = KindRegistry.with_builtins()

        class LoudPhrase(PhrasePuzzle):
            pass

        kinds.register("phrase", LoudPhrase)
        kinds.register("riddle", LoudPhrase)
        self.assertIs(kinds.get("phrase"), LoudPhrase)
        self.assertIn("riddle", kinds)
        kinds.reset()
        self.assertIs(kinds.get("phrase"), PhrasePuzzle)
        self.assertNotIn("riddle", kinds)
        self.assertEqual(len(kinds.names()), 9)

    def test_register_rejects_empty_names(self):
        with self.assertRaises(ValueError):
            KindRegistry().register("  ", PhrasePuzzle)

    def test_runner_uses_the_given_registry(self):
        kinds = KindRegistry()
        runner = create_puzzle_runner(config=PHRASE, registry=kinds)
        self.assertIs(type(runner.puzzle), BasePuzzle)


class RunnerResolutionTests(SimpleTestCase):
    def test_missing_config_raises(self):
        with self.assertRaises(ConfigNotFoundError) as ctx:
            create_puzzle_runner(ref="nope", puzzles_by_id={"p1": PHRASE})
        self.assertEqual(ctx.exception.ref, "nope")
        with self.assertRaises(ConfigNotFoundError):
            create_puzzle_runner()

    def test_ref_lookup_accepts_mapping_list_or_engine_table(self):
        runner = create_puzzle_runner(ref="p1", puzzles_by_id={"p1": PHRASE})
        self.assertEqual(runner.puzzle.id, "p1")
        runner = create_puzzle_runner(ref="p1", puzzles_by_id=[PHRASE])
        self.assertIsInstance(runner.puzzle, PhrasePuzzle)
        runner = create_puzzle_runner(ref="p1", engine=Engine(puzzles={"p1": PHRASE}))
        self.assertIsInstance(runner.puzzle, PhrasePuzzle)

    def test_inline_config_wins_over_ref(self):
        runner = create_puzzle_runner(config={"kind": "code", "solution": "1"}, ref="p1", puzzles_by_id={"p1": PHRASE})
        self.assertEqual(runner.puzzle.kind, "code")

    def test_wrapper_is_positioned_by_rect(self):
        runner, _, _, scene = launch(PHRASE, rect={"x": 5, "y": 10, "w": 50, "h": 40})
        wrapper = scene.query_selector(".pz-container")
        self.assertIs(wrapper, runner.wrapper)
        self.assertEqual(wrapper.style["left"], "5%")
        self.assertEqual(wrapper.style["height"], "40%")
        self.assertEqual(wrapper.style["z-index"], "8000")

    def test_background_overlay_resolves_assets(self):
        engine = Engine(asset_base="https://cdn.example/")
        runner = create_puzzle_runner(config=PHRASE, engine=engine, background="bg/room.jpg")
        scene = create_element("div")
        runner.mount_into(scene)
        overlay = scene.query_selector(".pz-overlay")
        self.assertIn("https://cdn.example/bg/room.jpg", overlay.style["background"])


class HoldPolicyTests(SimpleTestCase):
    def type_and_check(self, scene, engine, text):
        scene.query_selector('[data-id="input"]').type_text(text)
        scene.query_selector(".pz-btn--ok").click()
        engine.queue.run_pending()

    def test_without_blocking_a_failure_resolves(self):
        runner, engine, results, scene = launch(PHRASE)
        self.type_and_check(scene, engine, "wrong")
        self.assertEqual(results, [PuzzleResult(ok=False, value={"value": "wrong"})])
        self.assertEqual(runner.status, "resolved")

    def test_block_until_solved_holds_failures(self):
        runner, engine, results, scene = launch(PHRASE, options={"blockUntilSolved": True})
        self.type_and_check(scene, engine, "wrong")
        self.type_and_check(scene, engine, "still wrong")
        self.assertEqual(results, [])
        self.assertEqual(runner.held_count, 2)
        self.assertEqual(runner.status, "held")

        self.type_and_check(scene, engine, "  eureka ")
        self.assertEqual(len(results), 1)
        self.assertTrue(results[0].ok)
        self.assertEqual(runner.status, "resolved")

    def test_cancel_is_never_held(self):
        runner, engine, results, scene = launch(PHRASE, options={"block_until_solved": True})
        scene.query_selector(".pz-btn--cancel").click()
        engine.queue.run_pending()
        self.assertEqual(len(results), 1)
        self.assertFalse(results[0].ok)
        self.assertTrue(results[0].cancelled)
        self.assertEqual(runner.held_count, 0)

    def test_options_inside_the_config_apply(self):
        config = dict(PHRASE, options={"blockUntilSolved": True})
        runner, engine, results, scene = launch(config)
        self.type_and_check(scene, engine, "nope")
        self.assertEqual(results, [])
        self.assertEqual(runner.held_count, 1)

    def test_results_are_forwarded_once(self):
        runner, engine, results, scene = launch(PHRASE)
        self.type_and_check(scene, engine, "eureka")
        runner.puzzle.check()
        runner.puzzle.cancel()
        engine.queue.run_pending()
        self.assertEqual(len(results), 1)

    def test_resolution_is_deferred(self):
        runner, engine, results, scene = launch(PHRASE)
        scene.query_selector('[data-id="input"]').type_text("eureka")
        scene.query_selector('[data-id="input"]').press_key("Enter")
        self.assertEqual(results, [])
        self.assertTrue(runner.resolved)
        engine.queue.run_pending()
        self.assertEqual(len(results), 1)

    def test_escape_key_cancels(self):
        _, engine, results, scene = launch(PHRASE)
        scene.query_selector('[data-id="input"]').press_key("Escape")
        engine.queue.run_pending()
        self.assertTrue(results[0].cancelled)


class UnmountTests(SimpleTestCase):
    def test_unmount_releases_everything_and_is_idempotent(self):
        config = {"kind": "quiz", "tokens": [{"id": "a"}, {"id": "b"}], "solution_ids": ["a"]}
        runner, engine, _, scene = launch(config, options={"blockUntilSolved": True})
        runner.puzzle.toggle("b")
        runner.puzzle.check()
        self.assertEqual(runner.puzzle.pending_timers, 1)
        self.assertGreater(scene.listener_count(deep=True), 0)

        runner.unmount()
        runner.unmount()
        self.assertEqual(runner.status, "unmounted")
        self.assertEqual(runner.puzzle.pending_timers, 0)
        self.assertEqual(runner.puzzle.listener_count, 0)
        self.assertEqual(scene.children, [])
        self.assertEqual(engine.queue.pending, 0)

    def test_base_puzzle_renders_chrome_and_never_validates(self):
        runner, engine, results, scene = launch({"kind": "mystery", "title": "Hi"})
        self.assertIs(type(runner.puzzle), BasePuzzle)
        self.assertEqual(scene.query_selector(".pz-title").text, "Hi")
        runner.puzzle.check()
        engine.queue.run_pending()
        self.assertFalse(results[0].ok)
