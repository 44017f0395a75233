"""Property-based tests for target list selection.

Testing Configuration:
- Library: Hypothesis (Python)
- Minimum iterations: 100 per property test
"""

from hypothesis import given, settings, strategies as st

from src.jira_link.orchestrator import SyncOptions, select_target_list
from src.jira_link.references.draft import DraftKind
from src.jira_link.webhook.models import PullRequestSnapshot

list_names = st.one_of(
    st.none(),
    st.sampled_from(["In Progress", "In Review", "Done", "QA"]),
)


@st.composite
def sync_options(draw: st.DrawFn) -> SyncOptions:
    return SyncOptions(
        jira_domain="tracker.example",
        list_pr_draft=draw(list_names),
        list_pr_ready=draw(list_names),
        list_pr_merged=draw(list_names),
    )


@st.composite
def pull_requests(draw: st.DrawFn) -> PullRequestSnapshot:
    return PullRequestSnapshot(
        number=draw(st.integers(min_value=1, max_value=100000)),
        title=draw(st.text(max_size=40)),
        body=None,
        state=draw(st.sampled_from(["open", "closed", "locked", "merged"])),
        draft=draw(st.booleans()),
        html_url="https://github.com/acme/widgets/pull/1",
    )


class TestSelectTargetList:
    @given(
        pr=pull_requests(),
        kind=st.sampled_from(list(DraftKind)),
        options=sync_options(),
    )
    @settings(max_examples=100)
    def test_selected_list_follows_state_and_draft(self, pr, kind, options):
        decision = select_target_list(pr, kind, options)

        if pr.state == "open" and kind is not DraftKind.NONE:
            expected = options.list_pr_draft
        elif pr.state == "open":
            expected = options.list_pr_ready
        elif pr.state == "closed":
            expected = options.list_pr_merged
        else:
            expected = None

        assert decision.list_name == expected

    @given(
        pr=pull_requests(),
        kind=st.sampled_from(list(DraftKind)),
        options=sync_options(),
    )
    @settings(max_examples=100)
    def test_skips_always_carry_a_reason(self, pr, kind, options):
        decision = select_target_list(pr, kind, options)

        if decision.list_name is None:
            assert decision.reason

    @given(
        pr=pull_requests(),
        kind=st.sampled_from(list(DraftKind)),
        options=sync_options(),
    )
    @settings(max_examples=100)
    def test_unknown_states_never_transition(self, pr, kind, options):
        decision = select_target_list(pr, kind, options)

        if pr.state not in ("open", "closed"):
            assert decision.list_name is None
            assert f"pr.state={pr.state}" in decision.reason
            assert kind.value in decision.reason
