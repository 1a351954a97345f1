import json

import pytest

import jsonmend as jm


def _check(text, expected):
    repaired = jm.repair(text)
    assert repaired == expected
    json.loads(repaired)


@pytest.mark.parametrize("text, expected", [
    ("abc", '"abc"'),
    ("hello   world", '"hello   world"'),
    ("{\nmessage: hello world\n}", '{\n"message": "hello world"\n}'),
    ("{a:2}", '{"a":2}'),
    ("{a: 2}", '{"a": 2}'),
    ("{2: 2}", '{"2": 2}'),
    ("{true: 2}", '{"true": 2}'),
    ("{\n  a: 2\n}", '{\n  "a": 2\n}'),
    ("[a,b]", '["a","b"]'),
    ("[\na,\nb\n]", '[\n"a",\n"b"\n]'),
])
def test_missing_quotes(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ("https://www.bible.com/", '"https://www.bible.com/"'),
    ("{url:https://www.bible.com/}", '{"url":"https://www.bible.com/"}'),
    ('{url:https://www.bible.com/,"id":2}', '{"url":"https://www.bible.com/","id":2}'),
    ("[https://www.bible.com/]", '["https://www.bible.com/"]'),
    ("[https://www.bible.com/,2]", '["https://www.bible.com/",2]'),
])
def test_unquoted_urls(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ('"https://www.bible.com/', '"https://www.bible.com/"'),
    ('{"url":"https://www.bible.com/}', '{"url":"https://www.bible.com/"}'),
    ('{"url":"https://www.bible.com/,"id":2}', '{"url":"https://www.bible.com/","id":2}'),
    ('["https://www.bible.com/]', '["https://www.bible.com/"]'),
    ('["https://www.bible.com/,2]', '["https://www.bible.com/",2]'),
])
def test_urls_missing_end_quote(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ('"abc', '"abc"'),
    ("'abc", '"abc"'),
    ('"12:20', '"12:20"'),
    ('{"time":"12:20}', '{"time":"12:20"}'),
    ('{"date":2024-10-18T18:35:22.229Z}', '{"date":"2024-10-18T18:35:22.229Z"}'),
    ('"She said:', '"She said:"'),
    ('{"text": "She said:', '{"text": "She said:"}'),
    ('["hello, world]', '["hello", "world"]'),
    ('["hello,"world"]', '["hello","world"]'),
    ('{"a":"b}', '{"a":"b"}'),
    ('{"a":"b,"c":"d"}', '{"a":"b","c":"d"}'),
    ('{"a":"b,c,"d":"e"}', '{"a":"b,c","d":"e"}'),
    ('{a:"b,c,"d":"e"}', '{"a":"b,c","d":"e"}'),
    ('["b,c,]', '["b","c"]'),
    ("\u2018abc", '"abc"'),
    ('"it\'s working', '"it\'s working"'),
    ('["abc+/*comment*/"def"]', '["abcdef"]'),
    ('["abc/*comment*/+"def"]', '["abcdef"]'),
    ('["abc,/*comment*/"def"]', '["abc","def"]'),
])
def test_missing_end_quote(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ('"foo', '"foo"'),
    ("[", "[]"),
    ('["foo', '["foo"]'),
    ('["foo"', '["foo"]'),
    ('["foo",', '["foo"]'),
    ('{"foo":"bar"', '{"foo":"bar"}'),
    ('{"foo":"bar', '{"foo":"bar"}'),
    ('{"foo":', '{"foo":null}'),
    ('{"foo"', '{"foo":null}'),
    ('{"foo', '{"foo":null}'),
    ("{", "{}"),
    ('{"foo":"bar",', '{"foo":"bar"}'),
    ("2.", "2.0"),
    ("2e", "2e0"),
    ("2e+", "2e+0"),
    ("2e-", "2e-0"),
    ("-", "-0"),
    ('{"foo":"bar\\u20', '{"foo":"bar"}'),
    ('"\\u', '""'),
    ('"\\u2', '""'),
    ('"\\u260', '""'),
    ('"\\u2605', '"\\u2605"'),
    ('{"s \\ud', '{"s": null}'),
    ('{"message": "it\'s working', '{"message": "it\'s working"}'),
    ('{"text":"Hello Sergey,I hop', '{"text":"Hello Sergey,I hop"}'),
    ('{"message": "with, multiple, commma\'s, you see?',
     '{"message": "with, multiple, commma\'s, you see?"}'),
])
def test_truncated_json(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ("[1,2,3,...]", "[1,2,3]"),
    ("[1, 2, 3, ... ]", "[1, 2, 3  ]"),
    ("[1,2,3,/*comment1*/.../*comment2*/]", "[1,2,3]"),
    ("[\n  1,\n  2,\n  3,\n  /*comment1*/  .../*comment2*/\n]", "[\n  1,\n  2,\n  3\n    \n]"),
    ('{"array":[1,2,3,...]}', '{"array":[1,2,3]}'),
    ("[1,2,3,...,9]", "[1,2,3,9]"),
    ("[...,7,8,9]", "[7,8,9]"),
    ("[..., 7,8,9]", "[ 7,8,9]"),
    ("[...]", "[]"),
    ("[ ... ]", "[  ]"),
])
def test_ellipsis_in_array(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ('{"a":2,"b":3,...}', '{"a":2,"b":3}'),
    ('{"a":2,"b":3,/*comment1*/.../*comment2*/}', '{"a":2,"b":3}'),
    ('{\n  "a":2,\n  "b":3,\n  /*comment1*/.../*comment2*/\n}', '{\n  "a":2,\n  "b":3\n  \n}'),
    ('{"a":2,"b":3, ... }', '{"a":2,"b":3  }'),
    ('{"nested":{"a":2,"b":3, ... }}', '{"nested":{"a":2,"b":3  }}'),
    ('{"a":2,"b":3,...,"z":26}', '{"a":2,"b":3,"z":26}'),
    ("{...}", "{}"),
    ("{ ... }", "{  }"),
])
def test_ellipsis_in_object(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ('abc"', '"abc"'),
    ('[a","b"]', '["a","b"]'),
    ('[a",b"]', '["a","b"]'),
    ('{"a":"foo","b":"bar"}', '{"a":"foo","b":"bar"}'),
    ('{a":"foo","b":"bar"}', '{"a":"foo","b":"bar"}'),
    ('{"a":"foo",b":"bar"}', '{"a":"foo","b":"bar"}'),
    ('{"a":foo","b":"bar"}', '{"a":"foo","b":"bar"}'),
])
def test_missing_start_quote(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ('{"a":1}\n{"a":2}', '[\n{"a":1},\n{"a":2}\n]'),
    ('{"a":1},\n{"a":2},', '[\n{"a":1},\n{"a":2}\n]'),
    ('1\n2\n3', '[\n1,\n2,\n3\n]'),
])
def test_newline_delimited_json(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ("[1,2,3,]", "[1,2,3]"),
    ('{"a":1,}', '{"a":1}'),
    ("[,1,2,3]", "[1,2,3]"),
    ('{, "a":1}', '{ "a":1}'),
    ("[1 2 3]", "[1, 2, 3]"),
    ('{"a":1 "b":2}', '{"a":1, "b":2}'),
    ('{"a" 1}', '{"a": 1}'),
    ('{"a":}', '{"a":null}'),
    ("1,", "1"),
    ('{"a":1}}', '{"a":1}'),
    ("[1,2]]]", "[1,2]"),
])
def test_structural_repairs(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ("[True, False, None]", "[true, false, null]"),
    ("{a: undefined}", '{"a": null}'),
    ("00789", '"00789"'),
    ("[-007]", '["-007"]'),
    ('NumberLong("2")', '"2"'),
    ('{"n": NumberLong("2")}', '{"n": "2"}'),
    ('callback({"a":1});', '{"a":1}'),
    ("/ab+c/", '"/ab+c/"'),
    ('{"re": /[a-z]+/}', '{"re": "/[a-z]+/"}'),
])
def test_literal_repairs(text, expected):
    _check(text, expected)


@pytest.mark.parametrize("text, expected", [
    ('{"a":1 // note\n}', '{"a":1 \n}'),
    ('/* header */ [1, /* two */ 2]', ' [1,  2]'),
    ("[1,2 /* unterminated", "[1,2] "),
    ("{ 'a':\u3000'b'}", '{ "a": "b"}'),
])
def test_comments_and_special_whitespace(text, expected):
    _check(text, expected)
