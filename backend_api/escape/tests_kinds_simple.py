from django.test import SimpleTestCase

from escape.puzzles import Engine, create_element, create_puzzle_runner
from escape.tests_registry_runner import launch


def press_ok(scene, engine):
    scene.query_selector(".pz-btn--ok").click()
    engine.queue.run_pending()


class PhraseTests(SimpleTestCase):
    def test_answer_is_case_and_space_insensitive(self):
        _, engine, results, scene = launch({"kind": "phrase", "solution": "EUREKA"})
        scene.query_selector('[data-id="input"]').type_text("  eureka  ")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)
        self.assertEqual(results[0].value, {"value": "  eureka  "})

    def test_any_of_several_solutions(self):
        _, engine, results, scene = launch({"kind": "phrase", "solutions": ["colour", "color"]})
        scene.query_selector('[data-id="input"]').type_text("Color")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)

    def test_translated_solution(self):
        config = {"kind": "phrase", "solution": "@answer@cat", "placeholder": "@ph@Type"}
        engine = Engine(game_strings={"answer": "Katze", "ph": "Antwort"})
        results = []
        runner = create_puzzle_runner(config=config, engine=engine, on_resolve=results.append)
        scene = create_element("div")
        runner.mount_into(scene)
        field = scene.query_selector('[data-id="input"]')
        self.assertEqual(field.get_attribute("placeholder"), "Antwort")
        field.type_text("katze")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)

    def test_missing_solution_never_validates(self):
        _, engine, results, scene = launch({"kind": "phrase"})
        press_ok(scene, engine)
        self.assertFalse(results[0].ok)

    def test_held_failure_flashes_the_input(self):
        runner, engine, _, scene = launch({"kind": "phrase", "solution": "x"}, options={"blockUntilSolved": True})
        field = scene.query_selector('[data-id="input"]')
        field.type_text("y")
        press_ok(scene, engine)
        self.assertIn("invalid", field.class_list)
        engine.queue.advance(600)
        self.assertNotIn("invalid", field.class_list)


class CodeTests(SimpleTestCase):
    def test_code_is_masked_and_exact(self):
        _, engine, results, scene = launch(
            {"kind": "code", "solution": "Ab12"}, options={"blockUntilSolved": True}
        )
        field = scene.query_selector('[data-id="input"]')
        self.assertEqual(field.get_attribute("type"), "password")
        field.type_text("ab12")
        press_ok(scene, engine)
        self.assertEqual(results, [])
        field.type_text(" Ab12 ")
        press_ok(scene, engine)
        self.assertEqual(results, [])
        field.type_text("Ab12")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)


class QuizTests(SimpleTestCase):
    CONFIG = {
        "kind": "quiz",
        "tokens": [{"id": "a", "text": "Mars"}, {"id": "b", "text": "Moon"}, {"id": "c", "text": "Venus"}],
        "solutionIds": ["a", "c"],
        "multiSelect": True,
    }

    def click(self, scene, token_id):
        scene.query_selector(f'[data-id="{token_id}"]').click()

    def test_exact_set_is_correct(self):
        runner, engine, results, scene = launch(self.CONFIG)
        self.click(scene, "c")
        self.click(scene, "a")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)
        self.assertEqual(sorted(results[0].value["selected_ids"]), ["a", "c"])

    def test_subset_and_superset_fail(self):
        runner, engine, results, scene = launch(self.CONFIG, options={"blockUntilSolved": True, "resetOnFail": False})
        self.click(scene, "a")
        press_ok(scene, engine)
        self.click(scene, "b")
        self.click(scene, "c")
        press_ok(scene, engine)
        self.assertEqual(results, [])
        self.assertEqual(runner.held_count, 2)

    def test_feedback_marks_selection_and_hints(self):
        runner, engine, _, scene = launch(self.CONFIG, options={"blockUntilSolved": True})
        self.click(scene, "a")
        self.click(scene, "b")
        press_ok(scene, engine)
        self.assertIn("correct", scene.query_selector('[data-id="a"]').class_list)
        self.assertIn("wrong", scene.query_selector('[data-id="b"]').class_list)
        self.assertIn("hint", scene.query_selector('[data-id="c"]').class_list)
        engine.queue.advance(300)
        self.assertEqual(runner.puzzle.selected, [])
        self.assertNotIn("wrong", scene.query_selector('[data-id="b"]').class_list)

    def test_single_select_replaces_the_selection(self):
        config = dict(self.CONFIG, multiSelect=False, solutionIds=["b"])
        runner, engine, results, scene = launch(config)
        self.click(scene, "a")
        self.click(scene, "b")
        self.assertEqual(runner.puzzle.selected, ["b"])
        self.click(scene, "b")
        self.assertEqual(runner.puzzle.selected, [])

    def test_instance_option_overrides_multi_select(self):
        runner, _, _, scene = launch(self.CONFIG, options={"multiSelect": False})
        self.click(scene, "a")
        self.click(scene, "c")
        self.assertEqual(runner.puzzle.selected, ["c"])

    def test_tokens_flagged_correct(self):
        config = {"kind": "quiz", "tokens": [{"id": "x", "correct": True}, {"id": "y"}]}
        _, engine, results, scene = launch(config)
        self.click(scene, "x")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)


class ChoiceTests(SimpleTestCase):
    CONFIG = {
        "kind": "choice",
        "tokens": [
            {"id": "sky", "text": "The sky is", "choices": ["blue", "green", {"value": "red", "label": "Red!"}]},
            {"id": "grass", "text": "Grass is", "editable": True},
        ],
        "solutions": {"sky": "blue", "grass": ["green", "@grass.alt@verde"]},
    }

    def test_dropdown_opens_one_menu_at_a_time(self):
        runner, _, _, scene = launch(self.CONFIG)
        button = scene.query_selector('[data-id="button:sky"]')
        button.click()
        self.assertTrue(runner.puzzle.is_open("sky"))
        scene.query_selector(".pz-choice-list").click()
        self.assertFalse(runner.puzzle.is_open("sky"))

    def test_choose_and_type_then_check(self):
        runner, engine, results, scene = launch(self.CONFIG)
        scene.query_selector('[data-id="button:sky"]').click()
        scene.query_selector('[data-id="menu:sky"] [data-value="red"]').click()
        self.assertEqual(scene.query_selector('[data-id="button:sky"]').text, "Red!")
        self.assertFalse(runner.puzzle.is_open("sky"))

        scene.query_selector('[data-id="menu:sky"] [data-value="blue"]').click()
        scene.query_selector('[data-id="input:grass"]').type_text("verde")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)
        self.assertEqual(results[0].value, {"values": {"sky": "blue", "grass": "verde"}})

    def test_one_wrong_row_fails_the_whole_puzzle(self):
        runner, engine, results, scene = launch(self.CONFIG, options={"blockUntilSolved": True})
        runner.puzzle.choose("sky", "blue")
        scene.query_selector('[data-id="input:grass"]').type_text("purple")
        press_ok(scene, engine)
        self.assertEqual(results, [])
        self.assertIn("wrong", scene.query_selector('.pz-choice-row[data-id="grass"]').class_list)
        self.assertIn("correct", scene.query_selector('.pz-choice-row[data-id="sky"]').class_list)
        self.assertEqual(engine.toasts[-1][0], "The puzzle is not solved correctly.")

    def test_error_toast_can_be_disabled(self):
        runner, engine, _, scene = launch(
            dict(self.CONFIG, errorMessage="Nope"), options={"blockUntilSolved": True, "showErrorToast": False}
        )
        press_ok(scene, engine)
        self.assertEqual(engine.toasts, [])

    def test_custom_error_message(self):
        runner, engine, _, scene = launch(dict(self.CONFIG, errorMessage="Nope"), options={"blockUntilSolved": True})
        press_ok(scene, engine)
        self.assertEqual(engine.toasts[-1][0], "Nope")

    def test_unmounted_puzzle_never_validates(self):
        puzzle = create_puzzle_runner(config=self.CONFIG).puzzle
        self.assertFalse(puzzle.validate().ok)

        runner, _, _, _ = launch(self.CONFIG)
        runner.puzzle.choose("sky", "blue")
        runner.unmount()
        self.assertFalse(runner.puzzle.validate().ok)
        self.assertEqual(runner.puzzle.wrong_rows(), ["sky", "grass"])

    def test_per_token_solution(self):
        config = {"kind": "choice", "tokens": [{"id": "a", "choices": ["1", "2"], "solution": "2"}]}
        runner, engine, results, scene = launch(config)
        runner.puzzle.choose("a", "2")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)
