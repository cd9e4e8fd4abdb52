"""
Tests for the MongoDB helpers.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from bson import ObjectId

import database


class TestConnectDatabase:
    """Test startup connection handling."""

    def test_missing_url_is_fatal(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("MONGODB_URI", raising=False)

        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            database.connect_database()

    def test_connects_and_pings_named_database(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "mongodb://example:27017")
        monkeypatch.setenv("DATABASE_NAME", "shop")
        with patch.object(database, "MongoClient") as client_cls:
            client, db = database.connect_database()

        client_cls.assert_called_once()
        assert client_cls.call_args.args[0] == "mongodb://example:27017"
        client.__getitem__.assert_called_once_with("shop")
        db.command.assert_called_once_with("ping")

    def test_falls_back_to_default_database(self, monkeypatch):
        monkeypatch.delenv("DATABASE_NAME", raising=False)
        with patch.object(database, "MongoClient") as client_cls:
            client, db = database.connect_database(url="mongodb://example:27017/cw")

        client.get_default_database.assert_called_once_with(default=database.DEFAULT_DATABASE_NAME)
        assert db is client_cls.return_value.get_default_database.return_value

    def test_failed_ping_is_fatal(self):
        with patch.object(database, "MongoClient") as client_cls:
            client_cls.return_value.__getitem__.return_value.command.side_effect = RuntimeError("unreachable")
            with pytest.raises(RuntimeError, match="unreachable"):
                database.connect_database(url="mongodb://example:27017", name="shop")


class TestDocuments:
    """Test the collection helpers against mongomock."""

    def test_get_documents_with_filter(self, mongo_db):
        mongo_db["lessons"].insert_many([{"topic": "Math"}, {"topic": "Art"}])

        assert len(database.get_documents(mongo_db, "lessons")) == 2
        found = database.get_documents(mongo_db, "lessons", {"topic": "Art"})
        assert [d["topic"] for d in found] == ["Art"]

    def test_create_document_stamps_created_at(self, mongo_db):
        saved = database.create_document(mongo_db, "orders", {"name": "Ann"})

        assert isinstance(saved["_id"], ObjectId)
        assert isinstance(saved["createdAt"], datetime)
        assert mongo_db["orders"].count_documents({"_id": saved["_id"]}) == 1

    def test_create_document_keeps_given_timestamp(self, mongo_db):
        when = datetime(2024, 1, 2, tzinfo=timezone.utc)
        saved = database.create_document(mongo_db, "orders", {"name": "Ann", "createdAt": when})
        assert saved["createdAt"] == when

    def test_update_document_counts(self, mongo_db):
        oid = mongo_db["lessons"].insert_one({"topic": "Math", "space": 5}).inserted_id

        assert database.update_document(mongo_db, "lessons", oid, {"space": 4}) == (1, 1)
        assert database.update_document(mongo_db, "lessons", oid, {"space": 4}) == (1, 0)
        assert database.update_document(mongo_db, "lessons", ObjectId(), {"space": 4}) == (0, 0)

    def test_ping(self):
        db = MagicMock()
        db.command.return_value = {"ok": 1.0}
        assert database.ping(db) == {"ok": 1.0}
