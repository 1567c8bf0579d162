import pytest

from users_api.db.models import ReplaceStatus, User
from users_api.db.repositories import DuplicateIdError, UserNotFoundError

ID_A = "a" * 24
ID_B = "b" * 24
ID_C = "c" * 24


def test_insert_and_get(user_repo):
    assert user_repo.get_by_id(ID_A) is None

    user = User(id=ID_A, username="joe", password="hash")
    assert user_repo.insert(user) == user
    assert user_repo.get_by_id(ID_A) == user


def test_insert_without_password(user_repo):
    user_repo.insert(User(id=ID_A, username="maude"))
    assert user_repo.get_by_id(ID_A).password is None


def test_insert_duplicate_id(user_repo):
    user_repo.insert(User(id=ID_A, username="joe", password="one"))

    with pytest.raises(DuplicateIdError) as excinfo:
        user_repo.insert(User(id=ID_A, username="other", password="two"))
    assert excinfo.value.code == "DUPLICATE_ID"
    assert excinfo.value.details == {"id": ID_A}

    # 原本的資料不受影響
    assert user_repo.get_by_id(ID_A).username == "joe"
    assert user_repo.find_by_username("other") == []
    assert len(user_repo.list()) == 1


def test_list_keeps_insertion_order(user_repo):
    assert user_repo.list() == []

    for user_id, name in ((ID_C, "carl"), (ID_A, "anne"), (ID_B, "bob")):
        user_repo.insert(User(id=user_id, username=name))

    assert [u.id for u in user_repo.list()] == [ID_C, ID_A, ID_B]


def test_username_lookup_with_duplicates(user_repo):
    user_repo.insert(User(id=ID_B, username="sam", password="first"))
    user_repo.insert(User(id=ID_A, username="sam", password="second"))
    user_repo.insert(User(id=ID_C, username="other"))

    assert [u.id for u in user_repo.find_by_username("sam")] == [ID_B, ID_A]
    assert user_repo.get_by_username("sam").id == ID_B
    assert user_repo.get_by_username("nobody") is None


def test_replace_creates_missing(user_repo):
    user_repo.insert(User(id=ID_A, username="joe"))

    user, status = user_repo.replace_by_id(ID_B, "maude")
    assert status == ReplaceStatus.CREATED
    assert user == User(id=ID_B, username="maude")
    assert user_repo.get_by_id(ID_B) == user
    assert [u.id for u in user_repo.list()] == [ID_A, ID_B]


def test_replace_updates_existing(user_repo):
    user_repo.insert(User(id=ID_A, username="harry", password="old"))
    user_repo.insert(User(id=ID_B, username="joe"))

    user, status = user_repo.replace_by_id(ID_A, "harry2", "new")
    assert status == ReplaceStatus.UPDATED
    assert user_repo.get_by_id(ID_A) == User(id=ID_A, username="harry2", password="new")

    # 排序位置不變，username 索引跟著換
    assert [u.id for u in user_repo.list()] == [ID_A, ID_B]
    assert user_repo.find_by_username("harry") == []
    assert user_repo.get_by_username("harry2").id == ID_A


def test_replace_clears_password(user_repo):
    user_repo.insert(User(id=ID_A, username="harry", password="old"))
    user_repo.replace_by_id(ID_A, "harry")
    assert user_repo.get_by_id(ID_A).password is None


def test_replace_is_idempotent(user_repo):
    first, first_status = user_repo.replace_by_id(ID_A, "maude")
    second, second_status = user_repo.replace_by_id(ID_A, "maude")

    assert first_status == ReplaceStatus.CREATED
    assert second_status == ReplaceStatus.UPDATED
    assert first == second
    assert user_repo.list() == [first]


def test_delete(user_repo):
    user_repo.insert(User(id=ID_A, username="frank", password="hash"))
    user_repo.insert(User(id=ID_B, username="joe"))

    deleted = user_repo.delete_by_id(ID_A)
    assert deleted == User(id=ID_A, username="frank", password="hash")
    assert user_repo.get_by_id(ID_A) is None
    assert user_repo.find_by_username("frank") == []
    assert [u.id for u in user_repo.list()] == [ID_B]

    with pytest.raises(UserNotFoundError) as excinfo:
        user_repo.delete_by_id(ID_A)
    assert excinfo.value.message == "User not found"


def test_clear(user_repo, redis_conn):
    user_repo.insert(User(id=ID_A, username="joe"))
    user_repo.insert(User(id=ID_B, username="sam"))
    redis_conn.set("unrelated", "keep")

    user_repo.clear()

    assert user_repo.list() == []
    assert user_repo.get_by_username("joe") is None
    assert redis_conn.get("unrelated") == "keep"

    # 清空後還能正常新增
    user_repo.insert(User(id=ID_A, username="joe"))
    assert [u.id for u in user_repo.list()] == [ID_A]
