import unittest

from bfir import (
    CellAdd,
    Input,
    Loop,
    MoveThenAdd,
    NestingTooDeep,
    Output,
    Parser,
    PointerMove,
    Program,
    SetCell,
    UnmatchedLoopClose,
    UnmatchedLoopOpen,
    parse_program,
)
from bfir.nodes import count_nodes, format_tree, nesting_depth, node_to_dict
from bfir.parser import filter_tokens, fuse_move_add, is_clear_idiom, run_length


CANONICAL = "++++++++[>++++++++<-]>."


class FilterTests(unittest.TestCase):
    def test_drops_non_instruction_characters(self) -> None:
        self.assertEqual(filter_tokens("a+b-c>d<e.f,g[h]"), list("+-><.,[]"))

    def test_comment_only_source_parses_to_empty_program(self) -> None:
        self.assertEqual(parse_program("hello world\n# nothing here!"), Program(()))

    def test_empty_source(self) -> None:
        self.assertEqual(parse_program(""), Program(()))


class RunLengthTests(unittest.TestCase):
    def test_stops_at_first_other_token(self) -> None:
        self.assertEqual(run_length(list("+++-x"), 0, "+", "-"), (2, 4))

    def test_run_reaching_end_consumes_remaining_tokens(self) -> None:
        self.assertEqual(run_length(list("++"), 0, "+", "-"), (2, 2))

    def test_scans_from_offset(self) -> None:
        self.assertEqual(run_length(list(">>+<<<"), 3, ">", "<"), (-3, 3))

    def test_does_not_consume_following_loop_close(self) -> None:
        tokens = list("+[>--]")
        self.assertEqual(run_length(tokens, 3, "+", "-"), (-2, 2))


class PeepholeRuleTests(unittest.TestCase):
    def test_fuses_trailing_pointer_move(self) -> None:
        block = [Output(), PointerMove(3)]
        self.assertTrue(fuse_move_add(block, -2))
        self.assertEqual(block, [Output(), MoveThenAdd(3, -2)])

    def test_leaves_other_trailing_nodes(self) -> None:
        block = [CellAdd(1)]
        self.assertFalse(fuse_move_add(block, 2))
        self.assertEqual(block, [CellAdd(1)])

    def test_empty_block_is_not_fused(self) -> None:
        block = []
        self.assertFalse(fuse_move_add(block, 1))
        self.assertEqual(block, [])

    def test_clear_idiom_detection(self) -> None:
        self.assertTrue(is_clear_idiom(list("[-]"), 0))
        self.assertFalse(is_clear_idiom(list("[+]"), 0))
        self.assertFalse(is_clear_idiom(list("[>]"), 0))
        self.assertFalse(is_clear_idiom(list("[-"), 0))


class ParserTests(unittest.TestCase):
    def test_increments_fuse_into_single_add(self) -> None:
        self.assertEqual(parse_program("+++").body, (CellAdd(3),))

    def test_decrements_fuse_into_negative_add(self) -> None:
        self.assertEqual(parse_program("--").body, (CellAdd(-2),))

    def test_cancelling_runs_keep_a_zero_node(self) -> None:
        self.assertEqual(parse_program("+-").body, (CellAdd(0),))
        self.assertEqual(parse_program("><").body, (PointerMove(0),))

    def test_move_followed_by_add_fuses(self) -> None:
        self.assertEqual(parse_program(">>+").body, (MoveThenAdd(2, 1),))
        self.assertEqual(parse_program("<---").body, (MoveThenAdd(-1, -3),))

    def test_add_followed_by_move_does_not_fuse(self) -> None:
        self.assertEqual(parse_program("+>").body, (CellAdd(1), PointerMove(1)))

    def test_move_separated_by_output_does_not_fuse(self) -> None:
        self.assertEqual(parse_program(">.+").body, (PointerMove(1), Output(), CellAdd(1)))

    def test_clear_idiom_becomes_set_cell(self) -> None:
        self.assertEqual(parse_program("[-]").body, (SetCell(0),))

    def test_increment_loop_is_not_a_clear_idiom(self) -> None:
        self.assertEqual(parse_program("[+]").body, (Loop((CellAdd(1),)),))
        self.assertEqual(parse_program("[--]").body, (Loop((CellAdd(-2),)),))

    def test_move_before_clear_is_not_fused(self) -> None:
        self.assertEqual(parse_program(">[-]").body, (PointerMove(1), SetCell(0)))

    def test_io_nodes(self) -> None:
        self.assertEqual(parse_program(".,").body, (Output(), Input()))

    def test_canonical_program_structure(self) -> None:
        program = parse_program(CANONICAL)
        expected = (
            CellAdd(8),
            Loop((MoveThenAdd(1, 8), MoveThenAdd(-1, -1))),
            PointerMove(1),
            Output(),
        )
        self.assertEqual(program.body, expected)

    def test_loop_body_ending_in_run_before_close(self) -> None:
        program = parse_program("+[>+<--].")
        expected = (
            CellAdd(1),
            Loop((MoveThenAdd(1, 1), MoveThenAdd(-1, -2))),
            Output(),
        )
        self.assertEqual(program.body, expected)

    def test_nested_loops(self) -> None:
        program = parse_program("+[>[>+<-]<-]")
        inner = Loop((MoveThenAdd(1, 1), MoveThenAdd(-1, -1)))
        self.assertEqual(program.body, (CellAdd(1), Loop((PointerMove(1), inner, MoveThenAdd(-1, -1)))))

    def test_loop_containing_only_clear_idiom(self) -> None:
        self.assertEqual(parse_program("+[[-]]").body, (CellAdd(1), Loop((SetCell(0),))))

    def test_empty_loop(self) -> None:
        self.assertEqual(parse_program("[]").body, (Loop(()),))

    def test_parse_block_nested_counts_closing_bracket(self) -> None:
        nodes, consumed = Parser().parse_block(list("+>]+"), nested=True)
        self.assertEqual(nodes, [CellAdd(1), PointerMove(1)])
        self.assertEqual(consumed, 3)

    def test_parse_block_from_offset(self) -> None:
        tokens = list("[>+<-]+")
        nodes, consumed = Parser().parse_block(tokens, start=1, nested=True)
        self.assertEqual(nodes, [MoveThenAdd(1, 1), MoveThenAdd(-1, -1)])
        self.assertEqual(consumed, 5)

    def test_parse_block_top_level_consumes_everything(self) -> None:
        nodes, consumed = Parser().parse_block(list("+[-]>"))
        self.assertEqual(nodes, [CellAdd(1), SetCell(0), PointerMove(1)])
        self.assertEqual(consumed, 5)

    def test_deep_nesting_does_not_recurse(self) -> None:
        depth = 5000
        program = parse_program("+" + "[" * depth + ">" + "]" * depth)
        self.assertEqual(count_nodes(program.body), depth + 2)


class ParserErrorTests(unittest.TestCase):
    def test_unmatched_open(self) -> None:
        with self.assertRaises(UnmatchedLoopOpen) as ctx:
            parse_program("+[>+")
        self.assertEqual(ctx.exception.position, 1)

    def test_unmatched_open_inside_loop(self) -> None:
        with self.assertRaises(UnmatchedLoopOpen) as ctx:
            parse_program("[>[<]")
        self.assertEqual(ctx.exception.position, 0)

    def test_truncated_clear_idiom(self) -> None:
        with self.assertRaises(UnmatchedLoopOpen):
            parse_program("[-")

    def test_unmatched_close(self) -> None:
        with self.assertRaises(UnmatchedLoopClose) as ctx:
            parse_program("+]")
        self.assertEqual(ctx.exception.position, 1)

    def test_nested_block_without_close(self) -> None:
        with self.assertRaises(UnmatchedLoopOpen):
            Parser().parse_block(list("+>"), start=0, nested=True)

    def test_nesting_limit(self) -> None:
        with self.assertRaises(NestingTooDeep) as ctx:
            Parser(max_depth=2).parse("[[[>]]]")
        self.assertEqual(ctx.exception.position, 2)
        self.assertEqual(len(Parser(max_depth=3).parse("[[[>]]]").body), 1)

    def test_invalid_depth_setting(self) -> None:
        with self.assertRaises(ValueError):
            Parser(max_depth=0)


class FormatTreeTests(unittest.TestCase):
    def test_deep_tree_renders_without_recursion(self) -> None:
        depth = 1500
        program = parse_program("+" + "[" * depth + ">" + "]" * depth)
        lines = format_tree(program).splitlines()
        self.assertEqual(len(lines), depth + 3)
        self.assertEqual(lines[-1], "  " * (depth + 1) + "PointerMove(+1)")

    def test_deep_tree_converts_to_dict(self) -> None:
        depth = 1500
        tree = node_to_dict(parse_program("[" * depth + "." + "]" * depth))
        for _ in range(depth):
            self.assertEqual(tree["body"][0]["kind"], "loop")
            tree = tree["body"][0]
        self.assertEqual(tree["body"], [{"kind": "output"}])

    def test_dict_keeps_source_order(self) -> None:
        tree = node_to_dict(parse_program(">[.+]<"))
        self.assertEqual(
            tree,
            {
                "kind": "program",
                "body": [
                    {"kind": "pointer_move", "delta": 1},
                    {"kind": "loop", "body": [{"kind": "output"}, {"kind": "cell_add", "delta": 1}]},
                    {"kind": "pointer_move", "delta": -1},
                ],
            },
        )

    def test_nesting_depth(self) -> None:
        self.assertEqual(nesting_depth(parse_program("+.").body), 0)
        self.assertEqual(nesting_depth(parse_program("+[>[>]<[-]]+[>]").body), 2)
        self.assertEqual(nesting_depth(parse_program("[" * 40 + ">" + "]" * 40).body), 40)

    def test_renders_nested_structure(self) -> None:
        rendered = format_tree(parse_program(CANONICAL))
        self.assertEqual(
            rendered.splitlines(),
            [
                "Program",
                "  CellAdd(+8)",
                "  Loop",
                "    MoveThenAdd(+1, +8)",
                "    MoveThenAdd(-1, -1)",
                "  PointerMove(+1)",
                "  Output",
            ],
        )


if __name__ == "__main__":
    unittest.main()
