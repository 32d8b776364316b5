import json
import os
import tempfile
from io import StringIO

from django.core.management import call_command
from django.urls import reverse
from rest_framework.test import APITestCase

from escape.models import PuzzleDefinition
from escape.seed_utils import DEFAULT_SEED, ensure_seed_puzzles
from escape.sessions import get_store


class MetaTests(APITestCase):
    def test_health(self):
        resp = self.client.get(reverse("Health"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "Server is up!"})

    def test_puzzle_kinds(self):
        resp = self.client.get(reverse("puzzle-kinds"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(), ["choice", "cloze", "code", "group", "list", "match", "order", "phrase", "quiz"]
        )


class PuzzleTableTests(APITestCase):
    def test_seed_once(self):
        self.assertEqual(ensure_seed_puzzles(), len(DEFAULT_SEED))
        self.assertEqual(ensure_seed_puzzles(), 0)

    def test_list_and_filter(self):
        ensure_seed_puzzles()
        resp = self.client.get(reverse("puzzles"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()), len(DEFAULT_SEED))
        resp = self.client.get(reverse("puzzles"), {"kind": "Phrase"})
        self.assertEqual(resp.json(), [{"puzzle_id": "eureka", "kind": "phrase", "title": "The inscription"}])

    def test_inactive_puzzles_are_hidden(self):
        ensure_seed_puzzles()
        PuzzleDefinition.objects.filter(puzzle_id="safe").update(is_active=False)
        ids = [p["puzzle_id"] for p in self.client.get(reverse("puzzles")).json()]
        self.assertNotIn("safe", ids)

    def test_model_syncs_kind_and_id_from_config(self):
        p = PuzzleDefinition.objects.create(puzzle_id=" riddle ", config={"kind": "PHRASE", "title": "Riddle"})
        self.assertEqual(p.puzzle_id, "riddle")
        self.assertEqual(p.kind, "phrase")
        self.assertEqual(p.title, "Riddle")
        self.assertEqual(p.as_config()["id"], "riddle")

    def test_seed_command_from_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as fh:
            json.dump({"door": {"kind": "code", "solution": "7"}}, fh)
        self.addCleanup(os.remove, fh.name)
        out = StringIO()
        call_command("seed_puzzles", file=fh.name, stdout=out)
        self.assertIn("created: 1", out.getvalue())
        self.assertEqual(PuzzleDefinition.objects.get(puzzle_id="door").kind, "code")

        call_command("seed_puzzles", file=fh.name, stdout=out)
        self.assertIn("skipped: 1", out.getvalue())


class SessionFlowTests(APITestCase):
    def setUp(self):
        ensure_seed_puzzles()

    def tearDown(self):
        get_store().clear()

    def start(self, **payload):
        return self.client.post(reverse("start-session"), payload, format="json")

    def event(self, session_id, **payload):
        return self.client.post(reverse("session-event", kwargs={"session_id": session_id}), payload, format="json")

    def check(self, session_id):
        return self.client.post(reverse("session-check", kwargs={"session_id": session_id}), format="json")

    def test_start_by_ref(self):
        resp = self.start(ref="eureka")
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["kind"], "phrase")
        self.assertEqual(data["puzzle_id"], "eureka")
        self.assertEqual(data["status"], "mounted")
        self.assertIsNone(data["result"])
        self.assertEqual(data["tree"]["class"], "scene")

    def test_unknown_ref_is_404(self):
        resp = self.start(ref="nope")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["ref"], "nope")

    def test_start_requires_ref_or_config(self):
        self.assertEqual(self.start().status_code, 400)
        self.assertEqual(self.start(config={"title": "no kind"}).status_code, 400)

    def test_solve_a_phrase(self):
        session_id = self.start(ref="eureka").json()["session_id"]
        resp = self.event(session_id, event="input", target="input", value="EUREKA")
        self.assertEqual(resp.status_code, 200)
        resp = self.event(session_id, event="keydown", target="input", key="Enter")
        data = resp.json()
        self.assertEqual(data["status"], "resolved")
        self.assertEqual(data["result"], {"ok": True, "value": {"value": "EUREKA"}})

    def test_held_then_solved(self):
        session_id = self.start(ref="safe", instance_options={"block_until_solved": True}).json()["session_id"]
        self.event(session_id, event="input", target="input", value="0000")
        data = self.check(session_id).json()
        self.assertEqual(data["status"], "held")
        self.assertEqual(data["held_count"], 1)
        self.assertIsNone(data["result"])

        self.event(session_id, event="input", target="input", value="1234")
        data = self.check(session_id).json()
        self.assertEqual(data["status"], "resolved")
        self.assertTrue(data["result"]["ok"])

    def test_resolved_session_rejects_interaction(self):
        session_id = self.start(ref="eureka").json()["session_id"]
        url = reverse("session-cancel", kwargs={"session_id": session_id})
        data = self.client.post(url, format="json").json()
        self.assertEqual(data["result"], {"ok": False, "value": {"reason": "cancel"}})
        self.assertEqual(self.client.post(url, format="json").status_code, 409)
        self.assertEqual(self.check(session_id).status_code, 409)

    def test_missing_target_is_400(self):
        session_id = self.start(ref="eureka").json()["session_id"]
        self.assertEqual(self.event(session_id, event="click", target="ghost").status_code, 400)
        self.assertEqual(self.event(session_id, event="click").status_code, 400)

    def test_unknown_session_is_404(self):
        self.assertEqual(self.check("missing").status_code, 404)
        resp = self.client.get(reverse("session-detail", kwargs={"session_id": "missing"}))
        self.assertEqual(resp.status_code, 404)

    def test_inline_choice_with_selectors(self):
        config = {
            "kind": "choice",
            "tokens": [{"id": "sky", "choices": ["blue", "green"], "solution": "blue"}],
        }
        session_id = self.start(config=config).json()["session_id"]
        self.event(session_id, event="click", target="button:sky")
        self.event(session_id, event="click", selector='[data-id="menu:sky"] [data-value="blue"]')
        data = self.check(session_id).json()
        self.assertEqual(data["result"], {"ok": True, "value": {"values": {"sky": "blue"}}})

    def test_list_delegates_check_to_the_active_step(self):
        session_id = self.start(ref="vault").json()["session_id"]
        self.event(session_id, event="input", target="input", value="eureka")
        self.check(session_id)
        self.event(session_id, event="input", target="input", value="1234")
        data = self.check(session_id).json()
        self.assertIsNone(data["result"])
        # The summary screen is closed by a check on the list itself.
        data = self.check(session_id).json()
        self.assertTrue(data["result"]["ok"])
        self.assertEqual([r["ref"] for r in data["result"]["value"]["results"]], ["eureka", "safe"])

    def test_list_with_an_unknown_step_is_404(self):
        resp = self.start(config={"kind": "list", "steps": ["eureka", "missing"]})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["ref"], "missing")

    def test_pointerup_with_one_coordinate_is_accepted(self):
        config = {
            "kind": "match",
            "mode": "dragdrop",
            "tokens": [{"id": "fr", "side": "left"}, {"id": "paris", "side": "right"}],
            "solutions": {"fr": "paris"},
        }
        session_id = self.start(config=config).json()["session_id"]
        self.event(session_id, event="pointerdown", selector='.pz-match-board [data-id="fr"]')
        resp = self.event(session_id, event="pointerup", selector=".pz-match-board", x=40.0)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "mounted")

    def test_timers_run_with_advance_ms(self):
        session_id = self.start(
            ref="proverb", instance_options={"block_until_solved": True}
        ).json()["session_id"]
        self.event(session_id, event="click", selector='[data-token-id="cat"]')
        self.event(session_id, event="click", selector='[data-gap-id="gap1"]')
        self.check(session_id)
        resp = self.event(session_id, event="click", selector=".pz-cloze-text-area", advance_ms=800)
        gap = json.dumps(resp.json()["tree"])
        self.assertNotIn("filled", gap)

    def test_delete(self):
        session_id = self.start(ref="eureka").json()["session_id"]
        url = reverse("session-detail", kwargs={"session_id": session_id})
        self.assertEqual(self.client.get(url).status_code, 200)
        self.assertEqual(self.client.delete(url).status_code, 204)
        self.assertEqual(self.client.get(url).status_code, 404)
        self.assertEqual(self.client.delete(url).status_code, 404)
