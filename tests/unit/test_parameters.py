"""
具名參數綁定單元測試

測試參數名稱驗證、型別推斷與 sp_executesql 語句組合。
"""

import pytest

from core.exceptions import InvalidParametersError
from database.parameters import bind_parameters, infer_sql_type, normalize_parameter_name


class TestParameterNames:
    """參數名稱驗證測試"""

    @pytest.mark.parametrize("name,expected", [
        ("id", "id"),
        ("@id", "id"),
        ("_private", "_private"),
        ("order_2024", "order_2024"),
    ])
    def test_valid_names(self, name, expected):
        """✅ 合法名稱（可帶 @ 前綴）"""
        assert normalize_parameter_name(name) == expected

    @pytest.mark.parametrize("name", [
        "",
        "@",
        "1abc",
        "user name",
        "x; DROP TABLE users",
        "@@id",
        "a" * 129,
    ])
    def test_invalid_names(self, name):
        """❌ 拒絕無效名稱"""
        with pytest.raises(InvalidParametersError):
            normalize_parameter_name(name)

    def test_non_string_name(self):
        """❌ 名稱必須是字串"""
        with pytest.raises(InvalidParametersError) as exc_info:
            normalize_parameter_name(42)
        assert "must be a string" in exc_info.value.message


class TestTypeInference:
    """T-SQL 型別推斷測試"""

    @pytest.mark.parametrize("value,sql_type", [
        (True, "BIT"),
        (False, "BIT"),
        (0, "INT"),
        (2**31 - 1, "INT"),
        (-2**31, "INT"),
        (2**31, "BIGINT"),
        (-2**63, "BIGINT"),
        (3.14, "FLOAT"),
        ("text", "NVARCHAR(MAX)"),
        (None, "NVARCHAR(MAX)"),
    ])
    def test_inferred_types(self, value, sql_type):
        """✅ 依值推斷型別"""
        assert infer_sql_type("p", value) == sql_type

    def test_out_of_range_integer(self):
        """❌ 超出 BIGINT 範圍"""
        with pytest.raises(InvalidParametersError) as exc_info:
            infer_sql_type("big", 2**63)
        assert "@big" in exc_info.value.message

    @pytest.mark.parametrize("value", [[1, 2], {"a": 1}, b"bytes"])
    def test_unsupported_types(self, value):
        """❌ 不支援的值型別"""
        with pytest.raises(InvalidParametersError):
            infer_sql_type("p", value)


class TestBindParameters:
    """sp_executesql 語句組合測試"""

    @pytest.mark.parametrize("parameters", [None, {}])
    def test_no_parameters_passthrough(self, parameters):
        """✅ 無參數時原樣執行"""
        sql = "SELECT * FROM users"
        assert bind_parameters(sql, parameters) == (sql, [])

    def test_single_parameter(self):
        """✅ 單一參數"""
        statement, values = bind_parameters("SELECT * FROM users WHERE id = @id", {"id": 7})

        assert statement == "EXEC sp_executesql ?, ?, @id = ?"
        assert values == ["SELECT * FROM users WHERE id = @id", "@id INT", 7]

    def test_multiple_parameters_keep_order(self):
        """✅ 多個參數依輸入順序宣告"""
        statement, values = bind_parameters(
            "SELECT @a, @b, @c",
            {"@a": "x", "b": 1.5, "c": True}
        )

        assert statement == "EXEC sp_executesql ?, ?, @a = ?, @b = ?, @c = ?"
        assert values[1] == "@a NVARCHAR(MAX), @b FLOAT, @c BIT"
        assert values[2:] == ["x", 1.5, True]

    def test_value_never_in_sql_text(self):
        """✅ 值不會拼接進 SQL 文字"""
        payload = "'; DROP TABLE users; --"
        statement, values = bind_parameters("SELECT @q", {"q": payload})

        assert payload not in statement
        assert payload not in values[0]
        assert values[-1] == payload

    def test_duplicate_names_case_insensitive(self):
        """❌ 名稱重複（不分大小寫、含 @ 前綴）"""
        with pytest.raises(InvalidParametersError) as exc_info:
            bind_parameters("SELECT @id", {"id": 1, "@ID": 2})
        assert "Duplicate" in exc_info.value.message

    def test_null_value(self):
        """✅ null 值以 NVARCHAR(MAX) 宣告"""
        _, values = bind_parameters("SELECT @v", {"v": None})
        assert values == ["SELECT @v", "@v NVARCHAR(MAX)", None]
