from datetime import datetime

from recordkit.core import (
    BooleanField,
    DateTimeField,
    IntegerField,
    Model,
    StringField,
    describe_model,
    equal,
    hash_code,
    key_present,
    pretty_format,
)
from recordkit.core.display import datetime_formatter, format_value, get_datetime_formatter


class Topic(Model):
    title = StringField(nullable=True)
    author_name = StringField(nullable=True)
    author_email_address = StringField(default="test@test.com")
    written_on = DateTimeField(nullable=True)
    content = StringField(nullable=True)
    approved = BooleanField(default=True)
    replies_count = IntegerField(default=0)


class LoosePerson(Model):
    first_name = StringField()

    class Meta:
        abstract = True


class TitlePrimaryKeyTopic(Model):
    title = StringField(primary_key=True)
    id = IntegerField()


FIRST_TOPIC_ROW = {
    "id": 1,
    "title": "The First Topic",
    "author_name": "David",
    "author_email_address": "david@loudthinking.com",
    "written_on": datetime(2003, 7, 16, 14, 28, 11),
    "content": "Have a nice day",
    "approved": False,
    "replies_count": 1,
}


def test_describe_model_class():
    assert describe_model(Model) == "Model"
    assert describe_model(LoosePerson) == "LoosePerson(abstract)"
    assert describe_model(Topic).startswith("Topic(id: integer, title: string, author_name: string")
    assert "written_on: datetime" in describe_model(Topic)
    assert describe_model(Topic).endswith("approved: boolean, replies_count: integer)")


def test_describe_persisted_instance():
    topic = Topic.instantiate(FIRST_TOPIC_ROW)
    assert repr(topic) == (
        "<Topic id=1, title='The First Topic', author_name='David', "
        "author_email_address='david@loudthinking.com', written_on='2003-07-16 14:28:11', "
        "content='Have a nice day', approved=False, replies_count=1>"
    )
    assert topic.describe() == repr(topic)


def test_describe_with_custom_datetime_formatter():
    topic = Topic.instantiate(FIRST_TOPIC_ROW)
    default = get_datetime_formatter()
    with datetime_formatter(lambda value: "my_format"):
        assert "written_on='my_format'" in repr(topic)
    assert get_datetime_formatter() is default
    assert "written_on='2003-07-16 14:28:11'" in repr(topic)


def test_describe_new_instance():
    assert repr(Topic()).startswith("<Topic id=None, title=None")


def test_describe_partially_loaded_instance():
    assert repr(Topic.instantiate({"id": 1})) == "<Topic id=1>"
    assert repr(Topic.instantiate({"id": 1, "title": "The First Topic"})) == (
        "<Topic id=1, title='The First Topic'>"
    )


def test_describe_with_non_primary_key_id_attribute():
    topic = TitlePrimaryKeyTopic.instantiate({"title": "The First Topic", "id": 1})
    assert topic.pk == "The First Topic"
    assert "id=1" in repr(topic)


def test_pretty_format_new():
    actual = pretty_format(Topic())
    assert actual.startswith("<Topic:0x")
    assert actual.endswith(
        "\n id=None,\n title=None,\n author_name=None,\n author_email_address='test@test.com',\n"
        " written_on=None,\n content=None,\n approved=True,\n replies_count=0>"
    )


def test_pretty_format_persisted():
    actual = pretty_format(Topic.instantiate(FIRST_TOPIC_ROW))
    lines = actual.splitlines()
    assert lines[0].startswith("<Topic:0x")
    assert lines[1] == " id=1,"
    assert " written_on=2003-07-16 14:28:11," in lines
    assert lines[-1] == " replies_count=1>"


def test_pretty_format_uninitialized():
    topic = Topic.__new__(Topic)
    actual = pretty_format(topic)
    assert actual.startswith("<Topic:0x")
    assert actual.endswith(" not initialized>")
    assert repr(topic) == "<Topic not initialized>"


def test_uninitialized_instance_has_identity_of_its_own():
    topic = Topic.__new__(Topic)
    other = Topic.__new__(Topic)
    assert equal(topic, topic)
    assert not equal(topic, other)
    assert hash_code(topic) == hash(topic)
    assert topic.new_record
    assert not key_present(topic)
    assert len({topic, other, topic}) == 2


def test_pretty_format_overridden_by_describe():
    class InspectingTopic(Topic):
        def describe(self):
            return "inspecting topic"

    topic = InspectingTopic()
    assert pretty_format(topic) == "inspecting topic"
    assert repr(topic) == "inspecting topic"


def test_pretty_format_overridden_by_repr():
    class ReprTopic(Topic):
        def __repr__(self):
            return "repr topic"

    assert pretty_format(ReprTopic()) == "repr topic"


def test_pretty_format_with_non_primary_key_id_attribute():
    topic = TitlePrimaryKeyTopic.instantiate({"title": "The First Topic", "id": 1})
    assert " id=1>" in pretty_format(topic)


def test_format_value_quotes_strings_and_dates():
    assert format_value("x") == "'x'"
    assert format_value(None) == "None"
    assert format_value(datetime(2020, 1, 2, 3, 4, 5)) == "'2020-01-02 03:04:05'"
