import pytest

from dbexplorer.models.schema import BackendKind
from dbexplorer.services.detector import detect


class TestDetect:
    @pytest.mark.parametrize(
        "connection_string, expected",
        [
            ("mongodb://localhost:27017/shop", BackendKind.MONGODB),
            ("mongodb+srv://user:pw@cluster0.example.net/app", BackendKind.MONGODB),
            ("postgresql://user:pw@localhost:5432/app", BackendKind.POSTGRESQL),
            ("postgres://localhost/app", BackendKind.POSTGRESQL),
            ("mysql://root@localhost:3306/shop", BackendKind.MYSQL),
            (
                "https://firestore.googleapis.com/v1/projects/demo/databases/(default)/documents",
                BackendKind.FIREBASE,
            ),
            ("https://abcd1234.supabase.co", BackendKind.SUPABASE),
            ("https://api.example.com/posts", BackendKind.REST_API),
            ("http://localhost:3000/items", BackendKind.REST_API),
        ],
    )
    def test_known_sources(self, connection_string, expected):
        assert detect(connection_string) == expected

    def test_rules_are_checked_in_order(self):
        """The first matching keyword wins, even if a later one also matches."""
        assert detect("postgresql://mongo-host:5432/app") == BackendKind.MONGODB
        assert detect("mysql://postgres@localhost/db") == BackendKind.POSTGRESQL
        assert detect("https://mysql-proxy.supabase.co") == BackendKind.MYSQL

    def test_keyword_beats_http_prefix(self):
        assert detect("http://mongo.internal/api") == BackendKind.MONGODB

    def test_matching_is_case_sensitive(self):
        assert detect("MONGODB://localhost") == BackendKind.UNKNOWN
        assert detect("HTTPS://API.EXAMPLE.COM") == BackendKind.UNKNOWN

    @pytest.mark.parametrize("connection_string", ["", None, "sqlite:///tmp/db.sqlite", "ftp://files"])
    def test_unknown(self, connection_string):
        assert detect(connection_string) == BackendKind.UNKNOWN
