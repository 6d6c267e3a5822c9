"""Tests for the GitHub fetcher."""

import asyncio

import httpx
import pytest

from conftest import CONTRIB, GITHUB, encode
from devscope.errors import Malformed, NetworkFailure, NotFound, RateLimited
from devscope.github import (
    GitHubFetcher,
    decode_content,
    infer_commit_count,
    parse_last_page,
)
from devscope.sampler import TreeEntry


def fetcher_for(upstream, token=None):
    return GitHubFetcher(upstream.client(), token=token)


class TestCommitCountInference:
    def test_last_page_from_link_header(self):
        link = (
            '<https://api.github.com/repositories/1/commits?per_page=1&page=2>; rel="next", '
            '<https://api.github.com/repositories/1/commits?per_page=1&page=42>; rel="last"'
        )
        assert parse_last_page(link) == 42
        assert infer_commit_count(link, [{"sha": "a"}]) == 42

    def test_bare_page_parameter(self):
        assert infer_commit_count('page=42; rel="last"', [{"sha": "a"}]) == 42

    def test_per_page_is_not_mistaken_for_page(self):
        link = '<https://api.github.com/x/commits?page=7&per_page=1>; rel="last"'
        assert parse_last_page(link) == 7

    def test_no_header_counts_single_page(self):
        assert infer_commit_count(None, [{"sha": "a"}]) == 1

    def test_no_header_empty_repo(self):
        assert infer_commit_count(None, []) == 0

    def test_no_last_relation(self):
        assert infer_commit_count('<https://x?page=2>; rel="next"', [{"sha": "a"}]) == 1

    def test_non_list_body(self):
        assert infer_commit_count("", {"message": "Git Repository is empty."}) == 0


class TestDecodeContent:
    def test_roundtrip_with_newlines(self):
        encoded = encode("print('héllo')\n")
        wrapped = "\n".join(encoded[i:i + 8] for i in range(0, len(encoded), 8))
        assert decode_content(wrapped) == "print('héllo')\n"

    def test_binary_content_becomes_empty(self):
        assert decode_content("//79/A==", "logo.bin") == ""


class TestRepositoryPath:
    def test_fetch_repo(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r", json={"full_name": "o/r", "default_branch": "main"})
        data = asyncio.run(fetcher_for(upstream).fetch_repo("o", "r"))
        assert data["default_branch"] == "main"

    def test_fetch_repo_not_found(self, upstream):
        with pytest.raises(NotFound):
            asyncio.run(fetcher_for(upstream).fetch_repo("o", "missing"))

    def test_403_is_rate_limited_not_not_found(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r", status=403, json={"message": "API rate limit exceeded"})
        with pytest.raises(RateLimited):
            asyncio.run(fetcher_for(upstream).fetch_repo("o", "r"))

    def test_server_error_is_network_failure(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r", status=502, json={})
        with pytest.raises(NetworkFailure, match="502"):
            asyncio.run(fetcher_for(upstream).fetch_repo("o", "r"))

    def test_transport_error_is_network_failure(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r", error=httpx.ConnectError)
        with pytest.raises(NetworkFailure):
            asyncio.run(fetcher_for(upstream).fetch_repo("o", "r"))

    def test_invalid_json_is_malformed(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r", text="<html>oops</html>")
        with pytest.raises(Malformed):
            asyncio.run(fetcher_for(upstream).fetch_repo("o", "r"))

    def test_missing_default_branch_is_malformed(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r", json={"full_name": "o/r"})
        with pytest.raises(Malformed):
            asyncio.run(fetcher_for(upstream).fetch_repo("o", "r"))

    def test_token_sent_as_bearer(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r", json={"default_branch": "main"})
        asyncio.run(fetcher_for(upstream, token="ghp_test").fetch_repo("o", "r"))
        assert upstream.requests[0].headers["Authorization"] == "Bearer ghp_test"

    def test_no_token_no_auth_header(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r", json={"default_branch": "main"})
        asyncio.run(fetcher_for(upstream).fetch_repo("o", "r"))
        assert "Authorization" not in upstream.requests[0].headers

    def test_commit_count_from_link_header(self, upstream):
        upstream.add(
            f"{GITHUB}/repos/o/r/commits",
            json=[{"sha": "abc"}],
            headers={"Link": '<https://api.github.com/repositories/1/commits?per_page=1&page=42>; rel="last"'},
        )
        assert asyncio.run(fetcher_for(upstream).fetch_commit_count("o", "r")) == 42
        assert upstream.requests[0].url.params["per_page"] == "1"

    def test_commit_count_single_page(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r/commits", json=[{"sha": "abc"}])
        assert asyncio.run(fetcher_for(upstream).fetch_commit_count("o", "r")) == 1

    def test_fetch_tree(self, upstream):
        upstream.add(
            f"{GITHUB}/repos/o/r/git/trees/main",
            json={
                "truncated": False,
                "tree": [
                    {"path": "src", "type": "tree"},
                    {"path": "src/app.py", "type": "blob"},
                    {"type": "blob"},
                ],
            },
        )
        entries, truncated = asyncio.run(fetcher_for(upstream).fetch_tree("o", "r", "main"))
        assert entries == [TreeEntry("src", "tree"), TreeEntry("src/app.py", "blob")]
        assert truncated is False
        assert upstream.requests[0].url.params["recursive"] == "1"

    def test_truncated_tree_is_flagged_not_fatal(self, upstream):
        upstream.add(
            f"{GITHUB}/repos/o/r/git/trees/main",
            json={"truncated": True, "tree": [{"path": "a.py", "type": "blob"}]},
        )
        entries, truncated = asyncio.run(fetcher_for(upstream).fetch_tree("o", "r", "main"))
        assert truncated is True
        assert len(entries) == 1

    def test_fetch_file(self, upstream):
        upstream.add(f"{GITHUB}/repos/o/r/contents/src/app.py", json={"content": encode("x = 1\n")})
        sampled = asyncio.run(fetcher_for(upstream).fetch_file("o", "r", "src/app.py", "main"))
        assert sampled.path == "src/app.py"
        assert sampled.content == "x = 1\n"
        assert sampled.fetch_succeeded is True
        assert upstream.requests[0].url.params["ref"] == "main"


class TestProfilePath:
    def test_fetch_user(self, upstream):
        upstream.add(
            f"{GITHUB}/users/octocat",
            json={
                "login": "octocat",
                "name": "The Octocat",
                "avatar_url": "https://avatars/1",
                "bio": None,
                "followers": 10,
                "following": 2,
                "public_repos": 8,
                "created_at": "2011-01-25T18:44:36Z",
            },
        )
        user = asyncio.run(fetcher_for(upstream).fetch_user("octocat"))
        assert user.display_name == "The Octocat"
        assert user.public_repo_count == 8
        assert user.bio is None

    def test_non_numeric_counter_is_malformed(self, upstream):
        upstream.add(f"{GITHUB}/users/dev", json={"login": "dev", "followers": "lots"})
        with pytest.raises(Malformed, match="followers"):
            asyncio.run(fetcher_for(upstream).fetch_user("dev"))

    def test_null_counters_default_to_zero(self, upstream):
        upstream.add(f"{GITHUB}/users/dev", json={"login": "dev", "followers": None})
        user = asyncio.run(fetcher_for(upstream).fetch_user("dev"))
        assert user.followers == 0
        assert user.public_repo_count == 0

    def test_non_numeric_star_count_is_malformed(self, upstream):
        upstream.add(
            f"{GITHUB}/users/dev/repos",
            json=[{"name": "a", "full_name": "dev/a", "stargazers_count": {"n": 1}}],
        )
        with pytest.raises(Malformed, match="stargazers_count"):
            asyncio.run(fetcher_for(upstream).fetch_user_repos("dev"))

    def test_fetch_user_repos_skips_forks(self, upstream):
        upstream.add(
            f"{GITHUB}/users/octocat/repos",
            json=[
                {"name": "a", "full_name": "octocat/a", "stargazers_count": 5, "forks_count": 1, "language": "Go"},
                {"name": "b", "full_name": "octocat/b", "fork": True, "stargazers_count": 500},
                {"name": "c", "full_name": "octocat/c", "stargazers_count": 0, "language": None},
            ],
        )
        repos = asyncio.run(fetcher_for(upstream).fetch_user_repos("octocat"))
        assert [r.full_name for r in repos] == ["octocat/a", "octocat/c"]
        assert repos[0].star_count == 5
        params = upstream.requests[0].url.params
        assert params["per_page"] == "100"
        assert params["sort"] == "pushed"

    def test_fetch_user_repos_requires_list(self, upstream):
        upstream.add(f"{GITHUB}/users/octocat/repos", json={"message": "nope"})
        with pytest.raises(Malformed):
            asyncio.run(fetcher_for(upstream).fetch_user_repos("octocat"))

    def test_fetch_contributions(self, upstream):
        upstream.add(
            f"{CONTRIB}/octocat",
            json={
                "total": {"lastYear": 3},
                "contributions": [
                    {"date": "2026-10-01", "count": 3, "level": 2},
                    {"date": "not-a-date", "count": 1, "level": 1},
                ],
            },
        )
        days = asyncio.run(fetcher_for(upstream, token="secret").fetch_contributions("octocat"))
        assert len(days) == 1
        assert days[0].count == 3
        assert upstream.requests[0].url.params["y"] == "last"
        assert "Authorization" not in upstream.requests[0].headers
