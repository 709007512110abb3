import textwrap

from swagger_attributes.schema.literal import (
    Expression,
    MappingLiteral,
    ScalarLiteral,
    SequenceLiteral,
    analyze_source,
    literal_schema,
)


def _analyze(source: str):
    return analyze_source(textwrap.dedent(source))


class TestAnalyzeSource:
    def test_returned_dict_literal(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                return {"id": self.id, "active": True, "count": 3}
        """)
        keys = [key for key, _ in analysis.mapping.entries]
        assert keys == ["id", "active", "count"]
        assert isinstance(analysis.mapping.entries[0][1], Expression)
        assert analysis.mapping.entries[1][1] == ScalarLiteral(True)

    def test_returned_name_bound_to_dict(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                data = {"name": self.name}
                data["extra"] = 1
                return data
        """)
        assert [key for key, _ in analysis.mapping.entries] == ["name"]

    def test_dict_call(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                return dict(title=self.title, views=0)
        """)
        assert [key for key, _ in analysis.mapping.entries] == ["title", "views"]

    def test_first_mapping_return_wins(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                if self.resource is None:
                    return None
                if self.hidden:
                    return {"hidden": True}
                return {"id": 1, "name": "x"}
        """)
        assert [key for key, _ in analysis.mapping.entries] == ["hidden"]

    def test_nested_functions_are_not_entered(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                def helper():
                    return {"inner": 1}
                return {"outer": helper()}
        """)
        assert [key for key, _ in analysis.mapping.entries] == ["outer"]

    def test_no_mapping(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                return super().to_dict(request)
        """)
        assert analysis.mapping is None

    def test_relations_in_order_and_distinct(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                return {
                    "author": self.when_loaded("author"),
                    "comments": CommentResource.collection(self.when_loaded("comments")),
                    "writer": self.when_loaded("author"),
                }
        """)
        assert analysis.relations == ["author", "comments"]

    def test_spread_and_non_string_keys_are_skipped(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                return {**base, 1: "one", "kept": None}
        """)
        assert [key for key, _ in analysis.mapping.entries] == ["kept"]


class TestLiteralSchema:
    def test_scalars(self):
        assert literal_schema(ScalarLiteral(True)) == {"type": "boolean"}
        assert literal_schema(ScalarLiteral(None)) == {"type": "string", "nullable": True}
        assert literal_schema(ScalarLiteral(10)) == {"type": "integer"}
        assert literal_schema(ScalarLiteral(1.5)) == {"type": "number"}
        assert literal_schema(ScalarLiteral("x")) == {"type": "string"}

    def test_sequences(self):
        assert literal_schema(SequenceLiteral()) == {"type": "array", "items": {"type": "string"}}

    def test_expression_is_string(self):
        assert literal_schema(Expression("self.name")) == {"type": "string"}

    def test_nested_mappings_to_any_depth(self):
        analysis = _analyze("""
            def to_dict(self, request=None):
                return {
                    "a": {"b": {"c": {"d": -2, "e": [x for x in self.items]}}},
                    "ratio": -0.5,
                    "ids": list(self.ids),
                }
        """)
        schema = literal_schema(analysis.mapping)
        assert schema["properties"]["a"]["properties"]["b"]["properties"]["c"] == {
            "type": "object",
            "properties": {
                "d": {"type": "integer"},
                "e": {"type": "array", "items": {"type": "string"}},
            },
        }
        assert schema["properties"]["ratio"] == {"type": "number"}
        assert schema["properties"]["ids"] == {"type": "array", "items": {"type": "string"}}

    def test_empty_mapping(self):
        assert literal_schema(MappingLiteral()) == {"type": "object", "properties": {}}
