import pytest
import regex
from proxy_cookie.core.errors import ConfigurationError
from proxy_cookie.core.metrics import registry
from proxy_cookie.core.rewrite_chain import RewriteChain, RewriteRule


def test_single_rule_replaces_anchored_prefix():
    chain = RewriteChain.compile([("^/old", "/new")], name="path")
    assert chain.apply("/old/thing") == "/new/thing"
    assert chain.apply("/other/old") == "/other/old"


def test_rules_apply_in_declared_order():
    assert RewriteChain.compile([("a", "b"), ("b", "c")]).apply("a") == "c"
    assert RewriteChain.compile([("b", "c"), ("a", "b")]).apply("a") == "b"


def test_every_match_is_replaced():
    chain = RewriteChain.compile([("internal", "public")])
    assert chain.apply("internal.internal") == "public.public"


def test_empty_chain_is_identity():
    chain = RewriteChain.compile([], name="domain")
    assert len(chain) == 0
    assert chain.apply("/any/path") == "/any/path"


def test_apply_is_deterministic():
    chain = RewriteChain.compile([(r"^/svc/(\w+)", "/api/$1"), ("api", "edge")])
    first = chain.apply("/svc/users/42")
    assert first == "/edge/users/42"
    assert chain.apply("/svc/users/42") == first


def test_invalid_pattern_names_chain_and_pattern():
    with pytest.raises(ConfigurationError) as exc:
        RewriteChain.compile([("^/ok", "/fine"), ("(unclosed", "x")], name="domain")
    assert "(unclosed" in str(exc.value)
    assert "domain" in str(exc.value)


@pytest.mark.parametrize(
    "pattern, template, value, expected",
    [
        (r"^/internal/(\w+)", "/ext/$1", "/internal/app", "/ext/app"),
        (r"^/internal/(\w+)", "/ext/${1}/", "/internal/app", "/ext/app/"),
        (r"^(?P<svc>\w+)\.cluster\.local$", "${svc}.example.com", "auth.cluster.local", "auth.example.com"),
        (r"^(?P<svc>\w+)\.local$", "$svc.example.com", "auth.local", "auth.example.com"),
        (r"price", "$$5", "price", "$5"),
        (r"(a)", "$1x", "a", ""),
        (r"(a)", "${1}x", "a", "ax"),
        (r"(a)", "$9", "a", ""),
        (r"(a)", "${nope}", "a", ""),
        (r"a", "$-", "a", "$-"),
        (r"a", "${1", "a", "${1"),
        (r"(x)?b", "[$1]", "b", "[]"),
        (r"(a)", "$0$0", "a", "aa"),
        (r"(a)", "$1é", "a", ""),
        (r"(a)", "${1}é", "a", "aé"),
        (r"(a)", "$1²", "a", "a²"),
        ("x*", "-", "xab", "-a-b-"),
        (".*", "<$0>", "ab", "<ab>"),
        ("b*", "-", "abc", "-a-c-"),
    ],
)
def test_replacement_templates(pattern, template, value, expected):
    assert RewriteChain.compile([(pattern, template)]).apply(value) == expected


class SlowPattern:
    pattern = "(a+)+$"

    def sub(self, repl, string, timeout=None):
        raise TimeoutError("regex timed out")


def test_rule_exceeding_time_budget_is_skipped():
    before = registry.get_sample_value("proxy_cookie_regex_timeouts_total", {"chain": "path"}) or 0
    slow = RewriteRule(pattern=SlowPattern(), replacement="", template=())
    fast = RewriteRule.compile("^/a", "/b")
    chain = RewriteChain(name="path", rules=(slow, fast), timeout=0.01)

    assert chain.apply("/a/c") == "/b/c"
    after = registry.get_sample_value("proxy_cookie_regex_timeouts_total", {"chain": "path"})
    assert after == before + 1


def test_describe_lists_rules_in_order():
    chain = RewriteChain.compile([("^/a", "/b"), ("x", "")])
    assert chain.describe() == [
        {"regex": "^/a", "replacement": "/b"},
        {"regex": "x", "replacement": ""},
    ]


class RecordingPattern:
    """Real compiled pattern that records the time budget it is given."""

    def __init__(self, pattern):
        self.compiled = regex.compile(pattern)
        self.pattern = pattern
        self.timeouts = []

    def sub(self, repl, string, timeout=None):
        self.timeouts.append(timeout)
        return self.compiled.sub(repl, string, timeout=timeout)


def test_time_budget_reaches_regex_engine():
    recording = RecordingPattern(r"^/svc/(\w+)")
    rule = RewriteRule(pattern=recording, replacement="/$1", template=("/", 1))
    chain = RewriteChain(name="path", rules=(rule,), timeout=0.25)

    assert chain.apply("/svc/users") == "/users"
    assert recording.timeouts == [0.25]


def test_compiled_rule_matches_under_tiny_budget():
    chain = RewriteChain.compile([(r"^/svc/(\w+)", "/$1")], name="path", timeout=0.001)
    assert chain.apply("/svc/users") == "/users"
