from django.test import SimpleTestCase

from escape.puzzles.dom import create_element


class ElementTreeTests(SimpleTestCase):
    def setUp(self):
        self.root = create_element("div", "scene")
        self.panel = self.root.append_child(create_element("div", "panel main", id="p1"))
        self.button = self.panel.append_child(create_element("button", "pz-token", "Go", data_id="go"))
        self.field = self.panel.append_child(create_element("input", "pz-input", type="text"))

    def test_create_element_turns_underscores_into_dashes(self):
        self.assertEqual(self.button.get_attribute("data-id"), "go")
        self.assertEqual(self.field.get_attribute("type"), "text")

    def test_selectors(self):
        self.assertIs(self.root.query_selector(".pz-token"), self.button)
        self.assertIs(self.root.query_selector("#p1"), self.panel)
        self.assertIs(self.root.query_selector('[data-id="go"]'), self.button)
        self.assertIs(self.root.query_selector(".panel button"), self.button)
        self.assertIs(self.root.query_selector("input[type]"), self.field)
        self.assertIsNone(self.root.query_selector(".missing"))
        self.assertEqual(len(self.root.query_selector_all("div")), 1)

    def test_descendant_selector_is_scoped(self):
        # The scope itself never satisfies an ancestor part of the selector.
        self.assertIsNone(self.panel.query_selector(".panel button"))

    def test_dataset_is_visible_to_attribute_selectors(self):
        self.button.dataset["pair-index"] = "2"
        self.assertIs(self.root.query_selector('[data-pair-index="2"]'), self.button)

    def test_closest_and_contains(self):
        self.assertIs(self.button.closest(".panel"), self.panel)
        self.assertTrue(self.root.contains(self.button))
        self.assertFalse(self.button.contains(self.root))

    def test_events_bubble_until_stopped(self):
        seen = []
        self.root.add_event_listener("click", lambda e: seen.append("root"))
        self.panel.add_event_listener("click", lambda e: seen.append("panel"))
        self.button.click()
        self.assertEqual(seen, ["panel", "root"])

        seen.clear()
        self.panel.add_event_listener("click", lambda e: e.stop_propagation())
        self.button.click()
        self.assertEqual(seen, ["panel"])

    def test_listener_accounting(self):
        listener = lambda e: None  # noqa: E731
        self.button.add_event_listener("click", listener)
        self.field.add_event_listener("input", listener)
        self.assertEqual(self.root.listener_count(deep=True), 2)
        self.button.remove_event_listener("click", listener)
        self.assertEqual(self.root.listener_count(deep=True), 1)

    def test_type_text_sets_value_and_fires_input(self):
        got = []
        self.field.add_event_listener("input", lambda e: got.append(e.get("value")))
        self.field.type_text("hello")
        self.assertEqual(self.field.value, "hello")
        self.assertEqual(got, ["hello"])

    def test_insert_before_and_remove(self):
        first = create_element("span", "first")
        self.panel.insert_before(first, self.button)
        self.assertIs(self.panel.first_child, first)
        first.remove()
        self.assertIsNone(first.parent)
        self.assertNotIn(first, self.panel.children)

    def test_to_dict(self):
        tree = self.root.to_dict()
        self.assertEqual(tree["class"], "scene")
        panel = tree["children"][0]
        self.assertEqual(panel["children"][0]["text"], "Go")
        self.assertEqual(panel["children"][1]["value"], "")
