"""
Tests for the tool capability allow-list.
"""

from gateway.tools.policy import (
    TOOLS,
    AllowListPolicy,
    ToolCapability,
    ToolSpec,
    available_tools,
)


class TestAllowListPolicy:
    def test_read_allowed_for_everyone(self):
        policy = AllowListPolicy([])

        assert policy.is_authorized("anyone", ToolCapability.READ)

    def test_write_only_for_listed_logins(self):
        policy = AllowListPolicy(["octocat"])

        assert policy.is_authorized("octocat", ToolCapability.WRITE)
        assert not policy.is_authorized("OctoCat", ToolCapability.WRITE)
        assert not policy.is_authorized("stranger", ToolCapability.WRITE)


class TestAvailableTools:
    def test_provider_bound_tools(self, identity):
        google_identity = identity.model_copy(update={"provider": "google"})
        policy = AllowListPolicy(["octocat"])

        names = {t.name for t in available_tools(google_identity, policy.is_authorized)}

        assert {"sendEmail", "getEmailProfile", "executeDatabase"} <= names
        assert "searchRepositories" not in names

    def test_custom_predicate(self, identity):
        def deny_all(login: str, capability: ToolCapability) -> bool:
            return False

        assert available_tools(identity, deny_all) == []

    def test_predicate_receives_login(self, identity):
        seen = []

        def record(login: str, capability: ToolCapability) -> bool:
            seen.append((login, capability))
            return True

        tools = (ToolSpec("x", "x", ToolCapability.WRITE),)
        available_tools(identity, record, tools)

        assert seen == [("octocat", ToolCapability.WRITE)]

    def test_catalogue_names_are_unique(self):
        assert len({t.name for t in TOOLS}) == len(TOOLS)
