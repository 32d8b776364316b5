import math
import random

from django.test import SimpleTestCase

from escape.puzzles.layout import (
    grid_cells,
    grid_dimensions,
    min_separation,
    parse_pct,
    pct,
    rect_to_style,
    scatter_positions,
)
from escape.puzzles.schema import Rect


class GridTests(SimpleTestCase):
    def test_small_vertical_boards_sit_side_by_side(self):
        self.assertEqual(grid_dimensions(2), (2, 1))
        self.assertEqual(grid_dimensions(3), (3, 1))

    def test_larger_boards_go_square(self):
        self.assertEqual(grid_dimensions(4), (2, 2))
        self.assertEqual(grid_dimensions(5), (3, 2))
        self.assertEqual(grid_dimensions(9), (3, 3))

    def test_horizontal_is_the_transpose(self):
        self.assertEqual(grid_dimensions(2, "horizontal"), (1, 2))
        self.assertEqual(grid_dimensions(5, "horizontal"), (2, 3))

    def test_vertical_cells_fill_column_by_column(self):
        cells = grid_cells(4)
        self.assertEqual((cells[0].x, cells[0].y), (0, 0))
        self.assertEqual((cells[1].x, cells[1].y), (0, 50))
        self.assertEqual((cells[2].x, cells[2].y), (50, 0))

    def test_horizontal_cells_fill_row_by_row(self):
        cells = grid_cells(4, "horizontal")
        self.assertEqual((cells[1].x, cells[1].y), (50, 0))


class ScatterTests(SimpleTestCase):
    def test_ten_tokens_never_share_a_start(self):
        for seed in range(20):
            positions = scatter_positions(10, random.Random(seed))
            self.assertEqual(len(positions), 10)
            self.assertEqual(len(set(positions)), 10)
            floor = min_separation(10) - 0.05
            for i, a in enumerate(positions):
                for b in positions[i + 1:]:
                    self.assertGreater(math.hypot(a.x - b.x, a.y - b.y), floor)

    def test_positions_stay_inside_the_board(self):
        for position in scatter_positions(7, random.Random(3)):
            self.assertTrue(0 < position.x < 100)
            self.assertTrue(0 < position.y < 100)

    def test_same_seed_same_layout(self):
        self.assertEqual(scatter_positions(6, random.Random(1)), scatter_positions(6, random.Random(1)))

    def test_degenerate_counts(self):
        self.assertEqual(scatter_positions(0), [])
        self.assertEqual(len(scatter_positions(1, random.Random(0))), 1)
        with self.assertRaises(ValueError):
            scatter_positions(3, jitter=1.0)


class PercentTests(SimpleTestCase):
    def test_pct_round_trip(self):
        self.assertEqual(pct(12.5), "12.5%")
        self.assertEqual(pct(10), "10%")
        self.assertEqual(parse_pct("33.3%"), 33.3)
        self.assertEqual(parse_pct("bogus", 7.0), 7.0)

    def test_rect_to_style(self):
        self.assertEqual(
            rect_to_style(Rect(10, 20, 30, 40)),
            {"left": "10%", "top": "20%", "width": "30%", "height": "40%"},
        )
