from django.test import SimpleTestCase

from escape.puzzles.kinds.cloze import split_gaps
from escape.puzzles.runner import ConfigNotFoundError, create_puzzle_runner
from escape.tests_registry_runner import launch

PUZZLES = {
    "p1": {"kind": "phrase", "id": "p1", "solution": "alpha"},
    "p2": {"kind": "code", "id": "p2", "solution": "42"},
}


def answer(scene, engine, text):
    scene.query_selector('[data-id="input"]').type_text(text)
    scene.query_selector(".pz-btn--ok").click()
    engine.queue.run_pending()


class ListTests(SimpleTestCase):
    CONFIG = {"kind": "list", "id": "series", "steps": ["p1", "p2"]}

    def test_steps_run_in_order_then_the_summary_closes_the_list(self):
        runner, engine, results, scene = launch(self.CONFIG, puzzles=PUZZLES)
        puzzle = runner.puzzle
        self.assertEqual(puzzle.runner.puzzle.id, "p1")
        self.assertEqual(len(scene.query_selector_all(".pz-container")), 2)

        answer(scene, engine, "alpha")
        self.assertEqual(puzzle.runner.puzzle.id, "p2")
        # Teardown before construct: only the list wrapper and one step wrapper.
        self.assertEqual(len(scene.query_selector_all(".pz-container")), 2)

        answer(scene, engine, "42")
        self.assertIsNone(puzzle.runner)
        self.assertEqual(results, [])
        self.assertEqual(scene.query_selector(".pz-list-summary-score").text, "2 / 2")

        scene.query_selector(".pz-list-summary .pz-btn--ok").click()
        engine.queue.run_pending()
        self.assertEqual(len(results), 1)
        self.assertTrue(results[0].ok)
        self.assertEqual([r["ref"] for r in results[0].value["results"]], ["p1", "p2"])

    def test_failed_step_is_mounted_again(self):
        runner, engine, results, scene = launch(self.CONFIG, puzzles=PUZZLES)
        first = runner.puzzle.runner
        answer(scene, engine, "wrong")
        self.assertIsNot(runner.puzzle.runner, first)
        self.assertEqual(runner.puzzle.runner.puzzle.id, "p1")
        self.assertEqual(scene.query_selector('[data-id="input"]').value, "")

        answer(scene, engine, "alpha")
        answer(scene, engine, "42")
        score = scene.query_selector(".pz-list-summary-score")
        self.assertEqual(score.text, "1 / 2")
        self.assertIn("is-partial", score.class_list)
        self.assertEqual(runner.puzzle.results[0]["attempts"], 2)

    def test_block_until_solved_is_inherited_by_steps(self):
        runner, engine, _, scene = launch(self.CONFIG, puzzles=PUZZLES, options={"blockUntilSolved": True})
        step_runner = runner.puzzle.runner
        answer(scene, engine, "wrong")
        self.assertIs(runner.puzzle.runner, step_runner)
        self.assertEqual(step_runner.held_count, 1)

    def test_summary_can_be_skipped(self):
        config = dict(self.CONFIG, summary={"show": False})
        _, engine, results, scene = launch(config, puzzles=PUZZLES)
        answer(scene, engine, "alpha")
        answer(scene, engine, "42")
        engine.queue.run_pending()
        self.assertTrue(results[0].ok)
        self.assertIsNone(scene.query_selector(".pz-list-summary"))

    def test_cancelling_a_step_cancels_the_list(self):
        runner, engine, results, scene = launch(self.CONFIG, puzzles=PUZZLES, options={"blockUntilSolved": True})
        answer(scene, engine, "alpha")
        scene.query_selector(".pz-btn--cancel").click()
        engine.queue.run_pending()
        engine.queue.run_pending()
        self.assertEqual(len(results), 1)
        self.assertFalse(results[0].ok)
        self.assertTrue(results[0].cancelled)
        self.assertEqual(len(results[0].value["results"]), 1)
        self.assertIsNone(runner.puzzle.runner)

    def test_inline_steps(self):
        config = {"kind": "list", "steps": [{"config": {"kind": "phrase", "id": "inline1", "solution": "x"}}]}
        runner, engine, _, scene = launch(config)
        self.assertEqual(runner.puzzle.runner.puzzle.id, "inline1")
        answer(scene, engine, "x")
        self.assertIsNotNone(scene.query_selector(".pz-list-summary"))

    def test_unmount_tears_down_the_current_step(self):
        runner, engine, _, scene = launch(self.CONFIG, puzzles=PUZZLES)
        step_puzzle = runner.puzzle.runner.puzzle
        runner.unmount()
        self.assertEqual(step_puzzle.listener_count, 0)
        self.assertEqual(scene.children, [])

    def test_unknown_step_ref_fails_before_anything_mounts(self):
        config = {"kind": "list", "steps": ["p1", "missing"]}
        with self.assertRaises(ConfigNotFoundError) as ctx:
            create_puzzle_runner(config=config, puzzles_by_id=PUZZLES)
        self.assertEqual(ctx.exception.ref, "missing")

    def test_unknown_ref_inside_a_nested_list_is_reported(self):
        puzzles = dict(PUZZLES, inner={"kind": "list", "id": "inner", "steps": ["p2", "nope"]})
        with self.assertRaises(ConfigNotFoundError) as ctx:
            create_puzzle_runner(config={"kind": "list", "steps": ["p1", "inner"]}, puzzles_by_id=puzzles)
        self.assertEqual(ctx.exception.ref, "nope")

    def test_self_referencing_list_does_not_loop(self):
        puzzles = dict(PUZZLES, loop={"kind": "list", "id": "loop", "steps": ["p1", "loop"]})
        runner = create_puzzle_runner(ref="loop", puzzles_by_id=puzzles)
        self.assertEqual(runner.puzzle.unresolved_refs(), [])


class ClozeTests(SimpleTestCase):
    CONFIG = {
        "kind": "cloze",
        "text": "An {gap1} a day keeps the {gap2} away.",
        "tokens": [{"id": "apple", "text": "apple"}, {"id": "doctor", "text": "doctor"}, {"id": "cat", "text": "cat"}],
        "solution": {"gap1": "apple", "gap2": "doctor"},
    }

    def gap(self, scene, gap_id):
        return scene.query_selector(f'.pz-cloze-gap[data-gap-id="{gap_id}"]')

    def token(self, scene, token_id):
        return scene.query_selector(f'[data-token-id="{token_id}"]')

    def test_split_gaps(self):
        self.assertEqual(split_gaps("a {gap1}b{gap2}"), ["a ", "{gap1}", "b", "{gap2}"])

    def test_renders_text_gaps_and_bank(self):
        _, _, _, scene = launch(self.CONFIG)
        self.assertEqual(len(scene.query_selector_all(".pz-cloze-gap")), 2)
        self.assertEqual(len(scene.query_selector(".pz-cloze-tokens-area").children), 3)

    def test_click_token_then_gap_places_it(self):
        runner, engine, results, scene = launch(self.CONFIG)
        self.token(scene, "apple").click()
        self.gap(scene, "gap1").click()
        self.token(scene, "doctor").click()
        self.gap(scene, "gap2").click()
        self.assertIn("filled", self.gap(scene, "gap1").class_list)
        self.assertIs(self.token(scene, "apple").parent, self.gap(scene, "gap1"))
        scene.query_selector(".pz-btn--ok").click()
        engine.queue.run_pending()
        self.assertTrue(results[0].ok)
        self.assertEqual(results[0].value, {"placements": {"gap1": "apple", "gap2": "doctor"}})

    def test_clicking_a_filled_gap_returns_its_token(self):
        runner, _, _, scene = launch(self.CONFIG)
        runner.puzzle.place("apple", "gap1")
        self.token(scene, "apple").click()
        self.assertEqual(runner.puzzle.placements, {})
        self.assertIs(self.token(scene, "apple").parent, scene.query_selector(".pz-cloze-tokens-area"))
        self.assertNotIn("filled", self.gap(scene, "gap1").class_list)

    def test_placing_into_a_filled_gap_swaps_the_old_token_out(self):
        runner, _, _, scene = launch(self.CONFIG)
        runner.puzzle.place("cat", "gap1")
        runner.puzzle.place("apple", "gap1")
        self.assertEqual(runner.puzzle.placements, {"gap1": "apple"})
        self.assertIs(self.token(scene, "cat").parent, scene.query_selector(".pz-cloze-tokens-area"))
        runner.puzzle.place("apple", "gap2")
        self.assertEqual(runner.puzzle.placements, {"gap2": "apple"})

    def test_drag_onto_a_gap_and_off_again(self):
        runner, _, _, scene = launch(self.CONFIG)
        runner.puzzle.drag("doctor", self.gap(scene, "gap2"))
        self.assertEqual(runner.puzzle.placements, {"gap2": "doctor"})
        runner.puzzle.drag("doctor", scene.query_selector(".pz-cloze-text-area"))
        self.assertEqual(runner.puzzle.placements, {})

    def test_held_failure_returns_wrong_tokens(self):
        runner, engine, results, scene = launch(self.CONFIG, options={"blockUntilSolved": True})
        runner.puzzle.place("apple", "gap1")
        runner.puzzle.place("cat", "gap2")
        scene.query_selector(".pz-btn--ok").click()
        engine.queue.run_pending()
        self.assertIn("wrong", self.token(scene, "cat").class_list)
        engine.queue.advance(800)
        self.assertEqual(runner.puzzle.placements, {"gap1": "apple"})
        self.assertEqual(results, [])
