"""
Host policy tests
"""

import pytest

from sitemirror.crawler.errors import MalformedURL
from sitemirror.crawler.host_policy import (
    FirstResponseHostPolicy, HostPolicy, create_host_policy, host_of
)


def test_host_of_strips_userinfo_and_lowercases():
    assert host_of("http://user:pw@Example.COM:8080/x") == "example.com:8080"
    assert host_of("mailto:me@x.com") == ""


def test_seed_hosts_are_allowed():
    policy = HostPolicy(["http://x.com/start.html"])

    assert policy.is_allowed("http://x.com/other/page.html")
    assert policy.is_allowed("https://X.com/")
    assert not policy.is_allowed("http://y.com/")
    assert not policy.is_allowed("http://x.com:8080/")


def test_multiple_seed_hosts():
    policy = HostPolicy()
    for seed in "http://a.com/,http://b.com/docs/".split(','):
        policy.register(seed)

    assert policy.hosts == frozenset({"a.com", "b.com"})
    assert policy.is_allowed("http://a.com/x")
    assert policy.is_allowed("http://b.com/y")
    assert not policy.is_allowed("http://c.com/")


def test_hostless_urls_are_never_allowed():
    policy = HostPolicy(["http://x.com/"])

    assert not policy.is_allowed("mailto:me@x.com")
    assert not policy.is_allowed("http://[::1")


def test_register_rejects_hostless_seed():
    with pytest.raises(MalformedURL):
        HostPolicy().register("mailto:me@x.com")


def test_frozen_policy_is_read_only():
    policy = HostPolicy(["http://x.com/"])
    policy.freeze()

    with pytest.raises(RuntimeError):
        policy.register("http://y.com/")
    policy.observe_response("http://y.com/")
    assert not policy.is_allowed("http://y.com/")


def test_first_response_policy_locks_onto_first_host():
    policy = FirstResponseHostPolicy()
    policy.register("http://a.com/")
    policy.register("http://b.com/")
    policy.freeze()

    assert policy.is_allowed("http://a.com/")
    assert policy.is_allowed("http://b.com/")

    policy.observe_response("http://b.com/landing")
    policy.observe_response("http://a.com/")

    assert policy.hosts == frozenset({"b.com"})
    assert policy.is_allowed("http://b.com/other")
    assert not policy.is_allowed("http://a.com/")


def test_create_host_policy():
    assert type(create_host_policy("seeds")) is HostPolicy
    assert isinstance(create_host_policy("first-response"), FirstResponseHostPolicy)
    with pytest.raises(ValueError):
        create_host_policy("everything")
