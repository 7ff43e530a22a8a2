# mypy: allow-untyped-defs

from cstgen import combine


def parse_char(c):
    return combine.parse_node(lambda node: node if node == c else None)


def test_parse_node():
    parse_a = parse_char("a")
    assert parse_a(["a", "b"]) == ("a", ["b"])
    assert parse_a(["b"]) is None
    assert parse_a([]) is None


def test_parse_success_and_end():
    assert combine.parse_success(["a"]) == ((), ["a"])
    assert combine.parse_success([]) == ((), [])
    assert combine.parse_end([]) == ((), [])
    assert combine.parse_end(["a"]) is None


def test_parse_seq():
    parse = combine.parse_seq(parse_char("a"), combine.parse_seq(parse_char("b"), combine.parse_end))
    assert parse(["a", "b"]) == (("a", ("b", ())), [])
    assert parse(["a", "b", "c"]) is None
    assert parse(["a"]) is None


def test_parse_repeat_is_greedy():
    parse = combine.parse_repeat(parse_char("a"), combine.parse_success)
    assert parse(["a", "a", "b"]) == ((["a", "a"], ()), ["b"])
    assert parse(["b"]) == (([], ()), ["b"])
    assert parse([]) == (([], ()), [])


def test_parse_repeat_gives_back_elements():
    parse = combine.parse_repeat(
        parse_char("a"),
        combine.parse_seq(parse_char("a"), combine.parse_end),
    )
    assert parse(["a", "a", "a"]) == ((["a", "a"], ("a", ())), [])
    assert parse(["a"]) == (([], ("a", ())), [])
    assert parse([]) is None


def test_parse_repeat_elements_span_nodes():
    parse_pair = combine.parse_seq(parse_char("a"), combine.parse_seq(parse_char("b"), combine.parse_end))
    parse = combine.parse_repeat(parse_pair, combine.parse_end)
    assert parse(["a", "b", "a", "b"]) == (([("a", ("b", ())), ("a", ("b", ()))], ()), [])
    assert parse(["a", "b", "a"]) is None


def test_parse_repeat1():
    parse = combine.parse_repeat1(parse_char("a"), combine.parse_end)
    assert parse(["a"]) == ((["a"], ()), [])
    assert parse([]) is None
    assert parse(["b"]) is None


def test_parse_root():
    assert combine.parse_root(parse_char("a"), "a") == "a"
    assert combine.parse_root(parse_char("a"), "b") is None
    assert combine.parse_root(combine.parse_success, "a") is None


def test_case():
    case = combine.Case(1, "x")
    assert case.index == 1
    assert case.value == "x"
    assert case != combine.Case(0, "x")


def test_failing_repeat_tries_each_slice_once():
    # Elements of any length match, so without remembering exhausted
    # start offsets every split of the input would be tried.
    calls = []
    parse_run = combine.parse_repeat1(parse_char("a"), combine.parse_end)

    def parse_elt(nodes):
        calls.append(len(nodes))
        return parse_run(nodes)

    parse = combine.parse_repeat(parse_elt, combine.parse_seq(parse_char("b"), combine.parse_end))
    n = 24
    assert parse(["a"] * n) is None
    assert len(calls) <= n * (n + 1) // 2
