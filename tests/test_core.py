import random
import unittest

from slide2048 import core
from slide2048.core import DIRECTION, GameProgressState


def _empty(size=4):
    return [[0] * size for _ in range(size)]


def _random_board(rng, size=4):
    values = [0, 0, 0, 2, 2, 4, 4, 8, 16]
    return [[rng.choice(values) for _ in range(size)] for _ in range(size)]


class TestSlideLine(unittest.TestCase):
    def test_given_two_pairs_when_sliding_then_both_merge_toward_edge(self):
        line, gain, changed = core.slide_line([2, 2, 4, 4])
        self.assertEqual(line, [4, 8, 0, 0])
        self.assertEqual(gain, 12)
        self.assertTrue(changed)

    def test_given_three_equal_tiles_when_sliding_then_edge_pair_merges_first(self):
        line, gain, _ = core.slide_line([2, 2, 2, 0])
        self.assertEqual(line, [4, 2, 0, 0])
        self.assertEqual(gain, 4)

    def test_given_four_equal_tiles_when_sliding_then_two_merges_not_one(self):
        line, gain, _ = core.slide_line([2, 2, 2, 2])
        self.assertEqual(line, [4, 4, 0, 0])
        self.assertEqual(gain, 8)

    def test_given_merged_tile_when_next_tile_matches_then_no_second_merge(self):
        line, gain, _ = core.slide_line([4, 4, 8, 0])
        self.assertEqual(line, [8, 8, 0, 0])
        self.assertEqual(gain, 8)

    def test_given_gap_between_equal_tiles_when_sliding_then_they_merge(self):
        line, gain, changed = core.slide_line([2, 0, 0, 2])
        self.assertEqual(line, [4, 0, 0, 0])
        self.assertEqual(gain, 4)
        self.assertTrue(changed)

    def test_given_compacted_line_without_pairs_when_sliding_then_unchanged(self):
        line, gain, changed = core.slide_line([2, 4, 8, 0])
        self.assertEqual(line, [2, 4, 8, 0])
        self.assertEqual(gain, 0)
        self.assertFalse(changed)


class TestProcessMove(unittest.TestCase):
    def test_given_row_when_moving_left_then_row_compacts_and_scores(self):
        board = _empty()
        board[0] = [2, 2, 4, 4]
        new_board, gain, changed = core.process_move(board, DIRECTION.LEFT)
        self.assertEqual(new_board[0], [4, 8, 0, 0])
        self.assertEqual(gain, 12)
        self.assertTrue(changed)

    def test_given_row_with_gaps_when_moving_right_then_single_tile_at_right_edge(self):
        board = _empty()
        board[0] = [2, 0, 2, 0]
        new_board, gain, changed = core.process_move(board, DIRECTION.RIGHT)
        self.assertEqual(new_board[0], [0, 0, 0, 4])
        self.assertEqual(gain, 4)
        self.assertTrue(changed)

    def test_given_three_equal_tiles_when_moving_each_direction_then_edge_pair_merges(self):
        left = _empty()
        left[1] = [2, 2, 2, 0]
        self.assertEqual(core.process_move(left, DIRECTION.LEFT)[0][1], [4, 2, 0, 0])

        right = _empty()
        right[1] = [0, 2, 2, 2]
        self.assertEqual(core.process_move(right, DIRECTION.RIGHT)[0][1], [0, 0, 2, 4])

        up = _empty()
        for r in range(3):
            up[r][2] = 2
        moved = core.process_move(up, DIRECTION.UP)[0]
        self.assertEqual([row[2] for row in moved], [4, 2, 0, 0])

        down = _empty()
        for r in range(3):
            down[r][2] = 2
        moved = core.process_move(down, DIRECTION.DOWN)[0]
        self.assertEqual([row[2] for row in moved], [0, 0, 2, 4])

    def test_given_four_equal_tiles_in_column_when_moving_down_then_two_fours(self):
        board = _empty()
        for r in range(4):
            board[r][0] = 2
        moved, gain, _ = core.process_move(board, DIRECTION.DOWN)
        self.assertEqual([row[0] for row in moved], [0, 0, 4, 4])
        self.assertEqual(gain, 8)

    def test_given_left_compacted_board_when_moving_left_then_nothing_changes(self):
        board = [
            [2, 4, 8, 16],
            [4, 2, 0, 0],
            [8, 0, 0, 0],
            [0, 0, 0, 0],
        ]
        new_board, gain, changed = core.process_move(board, DIRECTION.LEFT)
        self.assertFalse(changed)
        self.assertEqual(gain, 0)
        self.assertEqual(new_board, board)

    def test_given_board_when_moving_then_input_is_not_mutated(self):
        board = _empty()
        board[0] = [0, 0, 2, 2]
        before = core.copy_board(board)
        core.process_move(board, "left")
        self.assertEqual(board, before)

    def test_given_random_boards_when_moving_twice_then_second_move_is_noop(self):
        rng = random.Random(7)
        for _ in range(300):
            board = _random_board(rng)
            for direction in DIRECTION:
                once, _, _ = core.process_move(board, direction)
                twice, gain, changed = core.process_move(once, direction)
                self.assertFalse(changed)
                self.assertEqual(gain, 0)
                self.assertEqual(twice, once)

    def test_given_random_boards_when_moving_then_tile_sum_is_conserved(self):
        rng = random.Random(11)
        for _ in range(300):
            board = _random_board(rng)
            before = sum(map(sum, board))
            before_tiles = sum(1 for row in board for v in row if v)
            for direction in DIRECTION:
                moved, gain, _ = core.process_move(board, direction)
                self.assertEqual(sum(map(sum, moved)), before)
                after_tiles = sum(1 for row in moved for v in row if v)
                # every merge removes one tile and scores at least 4
                self.assertGreaterEqual(gain, 4 * (before_tiles - after_tiles))
                self.assertEqual(gain == 0, before_tiles == after_tiles)

    def test_given_unknown_direction_when_moving_then_value_error(self):
        with self.assertRaises(ValueError):
            core.process_move(_empty(), "sideways")
        with self.assertRaises(ValueError):
            core.process_move(_empty(), 3)

    def test_given_non_square_board_when_moving_then_value_error(self):
        with self.assertRaises(ValueError):
            core.process_move([[2, 0], [0, 0, 0]], DIRECTION.UP)


class TestDirectionParse(unittest.TestCase):
    def test_given_names_in_any_case_when_parsing_then_members_returned(self):
        self.assertIs(DIRECTION.parse("left"), DIRECTION.LEFT)
        self.assertIs(DIRECTION.parse(" Up "), DIRECTION.UP)
        self.assertIs(DIRECTION.parse(DIRECTION.DOWN), DIRECTION.DOWN)

    def test_given_garbage_when_parsing_then_value_error(self):
        for value in ("", "north", None, 1):
            with self.assertRaises(ValueError):
                DIRECTION.parse(value)


class TestStatusChecks(unittest.TestCase):
    CHECKERBOARD = [
        [2, 4, 2, 4],
        [4, 2, 4, 2],
        [2, 4, 2, 4],
        [4, 2, 4, 2],
    ]

    def test_given_full_board_without_pairs_then_lost(self):
        self.assertTrue(core.is_lost(self.CHECKERBOARD))
        self.assertFalse(core.is_any_move_possible(self.CHECKERBOARD))
        self.assertEqual(core.determine_game_status(self.CHECKERBOARD), GameProgressState.GAME_OVER)

    def test_given_one_empty_cell_then_not_lost(self):
        board = core.copy_board(self.CHECKERBOARD)
        board[3][3] = 0
        self.assertFalse(core.is_lost(board))
        self.assertEqual(core.determine_game_status(board), GameProgressState.IN_PROGRESS)

    def test_given_full_board_with_vertical_pair_then_not_lost(self):
        board = core.copy_board(self.CHECKERBOARD)
        board[1][0] = 2
        self.assertFalse(core.is_lost(board))
        self.assertTrue(core.is_move_possible_in_direction(board, DIRECTION.UP))

    def test_given_win_tile_on_board_then_won(self):
        board = _empty()
        board[2][1] = 2048
        board[0][0] = 2
        self.assertEqual(core.determine_game_status(board, 2048), GameProgressState.GAME_WON)
        board[2][1] = 0
        self.assertEqual(core.determine_game_status(board, 2048), GameProgressState.IN_PROGRESS)

    def test_given_custom_win_tile_then_win_check_uses_it(self):
        board = _empty()
        board[0][0] = 256
        self.assertTrue(core.check_for_win(board, 256))
        self.assertFalse(core.check_for_win(board, 2048))

    def test_given_lost_board_holding_win_tile_then_lost_wins_over_won(self):
        board = core.copy_board(self.CHECKERBOARD)
        board[0][0] = 8
        self.assertEqual(core.determine_game_status(board, 8), GameProgressState.GAME_OVER)

    def test_given_corner_tile_then_only_inward_moves_possible(self):
        board = _empty()
        board[0][0] = 2
        self.assertFalse(core.is_move_possible_in_direction(board, DIRECTION.UP))
        self.assertFalse(core.is_move_possible_in_direction(board, DIRECTION.LEFT))
        self.assertTrue(core.is_move_possible_in_direction(board, DIRECTION.DOWN))
        self.assertTrue(core.is_move_possible_in_direction(board, DIRECTION.RIGHT))

    def test_max_tile(self):
        board = _empty()
        self.assertEqual(core.max_tile(board), 0)
        board[1][1] = 64
        board[3][0] = 8
        self.assertEqual(core.max_tile(board), 64)


class TestRandomTiles(unittest.TestCase):
    def test_given_full_board_when_placing_tile_then_none(self):
        board = [[2, 4], [8, 16]]
        self.assertIsNone(core.place_random_tile(board, random.Random(0)))
        self.assertEqual(board, [[2, 4], [8, 16]])

    def test_given_single_empty_cell_when_placing_tile_then_that_cell_is_used(self):
        board = [[2, 4], [0, 16]]
        row, col, value = core.place_random_tile(board, random.Random(0))
        self.assertEqual((row, col), (1, 0))
        self.assertIn(value, (2, 4))
        self.assertEqual(board[1][0], value)

    def test_given_many_spawns_then_four_appears_about_one_time_in_ten(self):
        rng = random.Random(2048)
        trials = 20000
        fours = 0
        for _ in range(trials):
            board = _empty()
            _, _, value = core.place_random_tile(board, rng)
            self.assertIn(value, (2, 4))
            fours += value == 4
        self.assertAlmostEqual(fours / trials, 0.1, delta=0.015)

    def test_given_same_seed_then_same_placement(self):
        a, b = _empty(), _empty()
        self.assertEqual(core.place_random_tile(a, random.Random(5)), core.place_random_tile(b, random.Random(5)))

    def test_validate_tiles_accepts_only_playable_boards(self):
        board = [[2, 0], [0, 4]]
        self.assertIs(core.validate_tiles(board), board)
        for bad in ([[0, 0], [0, 0]], [[3, 0], [0, 0]], [[1, 0], [0, 0]], [[2]], [[2, 0, 0], [0, 0]]):
            with self.assertRaises(ValueError):
                core.validate_tiles(bad)

    def test_validate_win_tile(self):
        self.assertEqual(core.validate_win_tile(256), 256)
        for bad in (0, 2, 6, 1000, True):
            with self.assertRaises(ValueError):
                core.validate_win_tile(bad)

    def test_new_board_rejects_tiny_sizes(self):
        for size in (0, 1, -3, 2.5, 17, 50000):
            with self.assertRaises(ValueError):
                core.new_board(size)
        self.assertEqual(core.new_board(3), [[0, 0, 0]] * 3)


if __name__ == "__main__":
    unittest.main()
