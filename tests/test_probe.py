"""Tests for the HEAD-based metadata probe."""

from datetime import datetime, timezone

import pytest
from werkzeug import Response

from httpseek.core.model import NotFoundError, ProtocolError, RemoteObjectRef
from httpseek.io import stat
from httpseek.io.probe import MetadataProbe


class TestMetadataProbe:
    """Test sync metadata probing."""

    def test_stat(self, serve_object, payload, httpserver):
        ref = RemoteObjectRef(serve_object("/obj.4mc", payload))
        meta = MetadataProbe().stat(ref)

        assert meta.exists is True
        assert meta.length == len(payload)
        assert meta.last_modified == datetime(2015, 10, 21, 7, 28, tzinfo=timezone.utc)

        request, _ = httpserver.log[-1]
        assert request.method == "HEAD"

    def test_missing_last_modified_defaults_to_now(self, serve_object, payload):
        ref = RemoteObjectRef(serve_object("/obj.4mc", payload, last_modified=None))
        before = datetime.now(timezone.utc)
        meta = MetadataProbe().stat(ref)
        assert before <= meta.last_modified <= datetime.now(timezone.utc)

    def test_not_found_names_path(self, httpserver):
        httpserver.expect_request("/data/missing.4mc").respond_with_response(Response(status=404))
        ref = RemoteObjectRef(httpserver.url_for("/data/missing.4mc"))

        with pytest.raises(NotFoundError, match="/data/missing.4mc"):
            MetadataProbe().stat(ref)
        assert len(httpserver.log) == 1

    def test_forbidden_is_not_found(self, httpserver):
        httpserver.expect_request("/secret.4mc").respond_with_response(Response(status=403))
        with pytest.raises(FileNotFoundError):
            MetadataProbe().stat(RemoteObjectRef(httpserver.url_for("/secret.4mc")))

    def test_undersized_object(self, serve_object):
        ref = RemoteObjectRef(serve_object("/tiny.4mc", b"x" * 11))
        with pytest.raises(ProtocolError):
            MetadataProbe().stat(ref)

    def test_minimum_size_accepted(self, serve_object):
        ref = RemoteObjectRef(serve_object("/small.4mc", b"x" * 12))
        assert MetadataProbe().stat(ref).length == 12

    def test_no_caching(self, serve_object, payload, httpserver):
        ref = RemoteObjectRef(serve_object("/obj.4mc", payload))
        probe = MetadataProbe()
        probe.stat(ref)
        probe.stat(ref)
        assert probe.requests_made == 2
        assert len(httpserver.log) == 2

    def test_exists(self, serve_object, payload, httpserver):
        httpserver.expect_request("/gone").respond_with_response(Response(status=404))
        probe = MetadataProbe()
        assert probe.exists(RemoteObjectRef(serve_object("/obj.4mc", payload)))
        assert probe.exists(RemoteObjectRef(serve_object("/tiny.4mc", b"abc")))
        assert not probe.exists(RemoteObjectRef(httpserver.url_for("/gone")))

    def test_redirects(self, serve_object, payload, httpserver):
        target = serve_object("/new.4mc", payload)
        httpserver.expect_request("/old.4mc").respond_with_response(
            Response(status=301, headers={"Location": target})
        )
        ref = RemoteObjectRef(httpserver.url_for("/old.4mc"))

        assert MetadataProbe().stat(ref).length == len(payload)
        with pytest.raises(NotFoundError):
            MetadataProbe(follow_redirects=False).stat(ref)

    def test_factory_function(self, serve_object, payload):
        meta = stat(serve_object("/obj.4mc", payload))
        assert meta.length == len(payload)
