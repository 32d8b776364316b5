from django.test import SimpleTestCase

from escape.tests_registry_runner import launch


def press_ok(scene, engine):
    scene.query_selector(".pz-btn--ok").click()
    engine.queue.run_pending()


class OrderTests(SimpleTestCase):
    CONFIG = {
        "kind": "order",
        "tokens": [{"id": "1", "text": "one"}, {"id": "2", "text": "two"}, {"id": "3", "text": "three"}],
        "solutions": ["1", "2", "3"],
    }

    def test_click_in_sequence_solves(self):
        runner, engine, results, scene = launch(self.CONFIG)
        self.assertEqual(sorted(runner.puzzle.shuffled_ids), ["1", "2", "3"])
        for token_id in ("1", "2", "3"):
            scene.query_selector(f'[data-id="{token_id}"]').click()
        ordered_area = scene.query_selector(".pz-area-ordered")
        self.assertEqual([el.get_attribute("data-id") for el in ordered_area.children], ["1", "2", "3"])
        press_ok(scene, engine)
        self.assertEqual(results[0].ok, True)
        self.assertEqual(results[0].value, {"ordered_ids": ["1", "2", "3"]})

    def test_transposition_fails_and_marks(self):
        runner, engine, results, scene = launch(self.CONFIG, options={"blockUntilSolved": True})
        for token_id in ("2", "1", "3"):
            runner.puzzle.toggle(token_id)
        press_ok(scene, engine)
        self.assertEqual(results, [])
        self.assertIn("wrong", scene.query_selector('[data-id="2"]').class_list)
        self.assertIn("correct", scene.query_selector('[data-id="3"]').class_list)

    def test_clicking_a_sequenced_token_returns_it(self):
        runner, _, _, scene = launch(self.CONFIG)
        runner.puzzle.toggle("1")
        runner.puzzle.toggle("2")
        runner.puzzle.toggle("1")
        self.assertEqual(runner.puzzle.ordered, ["2"])
        self.assertIs(scene.query_selector('[data-id="1"]').parent, runner.puzzle.pool_area)


class MatchColumnsTests(SimpleTestCase):
    CONFIG = {
        "kind": "match",
        "tokens": [
            {"id": "fr", "text": "France", "side": "left"},
            {"id": "de", "text": "Germany", "side": "left"},
            {"id": "paris", "text": "Paris", "side": "right"},
            {"id": "berlin", "text": "Berlin", "side": "right"},
        ],
        "solutions": {"fr": "paris", "de": "berlin"},
    }

    def click(self, scene, token_id):
        scene.query_selector(f'[data-id="{token_id}"]').click()

    def test_tokens_are_split_into_columns(self):
        _, _, _, scene = launch(self.CONFIG)
        left = scene.query_selector(".pz-match-column--left")
        self.assertEqual(sorted(el.get_attribute("data-id") for el in left.children), ["de", "fr"])

    def test_click_pairs_and_tags_a_shared_index(self):
        runner, _, _, scene = launch(self.CONFIG)
        self.click(scene, "fr")
        self.click(scene, "paris")
        self.assertEqual(runner.puzzle.pairs, {"fr": "paris", "paris": "fr"})
        self.assertEqual(scene.query_selector('[data-id="fr"]').dataset["pair-index"], "0")
        self.assertEqual(scene.query_selector('[data-id="paris"]').dataset["pair-index"], "0")
        self.assertEqual(len(scene.query_selector_all(".pz-match-line")), 1)

        self.click(scene, "de")
        self.click(scene, "berlin")
        self.assertEqual(scene.query_selector('[data-id="berlin"]').dataset["pair-index"], "1")

    def test_same_side_click_moves_the_selection(self):
        runner, _, _, scene = launch(self.CONFIG)
        self.click(scene, "fr")
        self.click(scene, "de")
        self.assertEqual(runner.puzzle.selected, "de")
        self.assertEqual(runner.puzzle.pairs, {})

    def test_clicking_a_paired_token_unpairs_and_frees_the_index(self):
        runner, _, _, scene = launch(self.CONFIG)
        runner.puzzle.pair("fr", "paris")
        runner.puzzle.pair("de", "berlin")
        self.click(scene, "paris")
        self.assertEqual(runner.puzzle.pairs, {"de": "berlin", "berlin": "de"})
        self.assertNotIn("pair-index", scene.query_selector('[data-id="fr"]').dataset)
        self.assertEqual(runner.puzzle.pair("fr", "berlin"), 0)
        self.assertNotIn("de", runner.puzzle.pairs)

    def test_check(self):
        runner, engine, results, scene = launch(self.CONFIG)
        runner.puzzle.pair("fr", "paris")
        runner.puzzle.pair("berlin", "de")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)

    def test_held_failure_breaks_wrong_pairs_later(self):
        runner, engine, results, scene = launch(self.CONFIG, options={"blockUntilSolved": True})
        runner.puzzle.pair("fr", "paris")
        runner.puzzle.pair("de", "paris")
        runner.puzzle.pair("fr", "berlin")
        press_ok(scene, engine)
        self.assertIn("wrong", scene.query_selector('[data-id="fr"]').class_list)
        engine.queue.advance(800)
        self.assertEqual(runner.puzzle.pairs, {})

    def test_pairs_as_list(self):
        config = dict(self.CONFIG, solutions=[["paris", "fr"], ["de", "berlin"]])
        runner, engine, results, scene = launch(config)
        runner.puzzle.pair("fr", "paris")
        runner.puzzle.pair("de", "berlin")
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)


class MatchDragDropTests(SimpleTestCase):
    CONFIG = dict(MatchColumnsTests.CONFIG, mode="dragdrop")

    def test_tokens_start_apart(self):
        runner, _, _, scene = launch(self.CONFIG)
        self.assertIsNotNone(scene.query_selector(".pz-match-board"))
        positions = list(runner.puzzle.positions.values())
        self.assertEqual(len(set(positions)), 4)
        for token_id, position in runner.puzzle.positions.items():
            self.assertIsNone(runner.puzzle.token_at(position, exclude=token_id))

    def test_drop_onto_a_token_pairs(self):
        runner, engine, results, scene = launch(self.CONFIG)
        target = runner.puzzle.positions["paris"]
        runner.puzzle.drag("fr", target.x, target.y)
        self.assertEqual(runner.puzzle.pairs["fr"], "paris")

        target = runner.puzzle.positions["berlin"]
        runner.puzzle.drag("de", target.x + 1, target.y)
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)

    def test_drop_on_empty_space_unpairs(self):
        runner, _, _, _ = launch(self.CONFIG)
        target = runner.puzzle.positions["paris"]
        runner.puzzle.drag("fr", target.x, target.y)
        # Corners are outside the scatter margins, so nothing is hit there.
        runner.puzzle.drag("fr", 1, 1)
        self.assertEqual(runner.puzzle.pairs, {})
        self.assertEqual(runner.puzzle.positions["fr"].x, 1)

    def test_drop_without_both_coordinates_keeps_the_token_in_place(self):
        runner, _, _, _ = launch(self.CONFIG)
        puzzle = runner.puzzle
        before = puzzle.positions["fr"]
        puzzle.token_els["fr"].dispatch("pointerdown")
        puzzle.board.dispatch("pointermove", x=None, y=30.0)
        puzzle.board.dispatch("pointerup", x=40.0, y=None)
        self.assertIsNone(puzzle._dragging)
        self.assertEqual(puzzle.positions["fr"], before)
        self.assertEqual(puzzle.pairs, {})


class GroupTests(SimpleTestCase):
    CONFIG = {
        "kind": "group",
        "groups": [{"id": "fruit", "label": "Fruit"}, {"id": "veg", "label": "Vegetables"}],
        "tokens": [{"id": "apple"}, {"id": "carrot"}, {"id": "pear"}],
        "solutions": {"apple": "fruit", "pear": "fruit", "carrot": "veg"},
    }

    def area(self, scene, group_id):
        return scene.query_selector(f'.pz-group-area[data-group="{group_id}"]')

    def test_tokens_start_in_the_pool_and_the_board_is_a_grid(self):
        runner, _, _, scene = launch(self.CONFIG)
        pool = scene.query_selector(".pz-group-pool")
        self.assertEqual(len(pool.children), 3)
        board = scene.query_selector(".pz-group-board")
        self.assertEqual(runner.puzzle.grid, (2, 1))
        self.assertEqual(board.style["grid-template-columns"], "repeat(2, 1fr)")
        self.assertEqual(self.area(scene, "veg").query_selector(".pz-group-label").text, "Vegetables")

    def test_click_token_then_area(self):
        runner, engine, results, scene = launch(self.CONFIG)
        for token_id, group_id in (("apple", "fruit"), ("pear", "fruit"), ("carrot", "veg")):
            scene.query_selector(f'[data-id="{token_id}"]').click()
            self.area(scene, group_id).click()
        self.assertEqual(len(self.area(scene, "fruit").query_selector_all(".pz-token")), 2)
        press_ok(scene, engine)
        self.assertTrue(results[0].ok)
        self.assertEqual(results[0].value["groups"]["carrot"], "veg")

    def test_clicking_the_pool_returns_a_selected_token(self):
        runner, _, _, scene = launch(self.CONFIG)
        runner.puzzle.assign("apple", "veg")
        scene.query_selector('[data-id="apple"]').click()
        scene.query_selector(".pz-group-pool").click()
        self.assertNotIn("apple", runner.puzzle.assignments)

    def test_drag_uses_the_grid_cells(self):
        runner, _, _, _ = launch(self.CONFIG)
        runner.puzzle.drag("carrot", 75, 50)
        self.assertEqual(runner.puzzle.assignments, {"carrot": "veg"})
        runner.puzzle.drag("carrot", 25, 50)
        self.assertEqual(runner.puzzle.assignments, {"carrot": "fruit"})

    def test_set_groups_recomputes_the_grid(self):
        runner, _, _, scene = launch(self.CONFIG)
        runner.puzzle.assign("carrot", "veg")
        runner.puzzle.set_groups(["a", "b", "c", "d", "e"])
        self.assertEqual(runner.puzzle.grid, (3, 2))
        board = scene.query_selector(".pz-group-board")
        self.assertEqual(board.dataset["rows"], "2")
        self.assertEqual(len(board.query_selector_all(".pz-group-area")), 5)
        self.assertEqual(runner.puzzle.assignments, {})
        self.assertEqual(len(scene.query_selector(".pz-group-pool").children), 3)

    def test_horizontal_layout_transposes(self):
        runner, _, _, _ = launch(dict(self.CONFIG, layout={"direction": "horizontal"}))
        self.assertEqual(runner.puzzle.grid, (1, 2))

    def test_manual_layout_uses_group_rects(self):
        config = dict(
            self.CONFIG,
            layout={"mode": "manual"},
            groups=[
                {"id": "fruit", "rect": {"x": 0, "y": 0, "w": 30, "h": 100}},
                {"id": "veg", "rect": {"x": 70, "y": 0, "w": 30, "h": 100}},
            ],
        )
        runner, _, _, scene = launch(config)
        self.assertEqual(self.area(scene, "veg").style["left"], "70%")
        runner.puzzle.drag("apple", 50, 50)
        self.assertEqual(runner.puzzle.assignments, {})
        runner.puzzle.drag("apple", 80, 50)
        self.assertEqual(runner.puzzle.assignments, {"apple": "veg"})

    def test_held_failure_returns_wrong_tokens(self):
        runner, engine, results, scene = launch(self.CONFIG, options={"blockUntilSolved": True})
        runner.puzzle.assign("apple", "fruit")
        runner.puzzle.assign("carrot", "fruit")
        press_ok(scene, engine)
        self.assertEqual(results, [])
        self.assertEqual(runner.puzzle.assignments, {"apple": "fruit"})
