"""
Unit tests for deep equality and configuration change detection.
"""

import unittest

from diff import deep_equal, has_configuration_changed


class TestDeepEqual(unittest.TestCase):
    """Test deep_equal structural comparison."""

    def test_scalars_compare_strictly(self):
        """No type coercion between scalars."""
        self.assertTrue(deep_equal(1, 1))
        self.assertTrue(deep_equal("hello", "hello"))
        self.assertTrue(deep_equal(None, None))
        self.assertFalse(deep_equal(1, "1"))
        self.assertFalse(deep_equal(True, 1))
        self.assertFalse(deep_equal(0, False))
        self.assertFalse(deep_equal(None, ""))
        self.assertFalse(deep_equal("hello", "world"))

    def test_int_and_float_with_same_value_are_equal(self):
        """Numbers compare by value."""
        self.assertTrue(deep_equal(256, 256.0))

    def test_lists_are_order_sensitive(self):
        """Same members in another order are a difference."""
        self.assertTrue(deep_equal([1, 2, 3], [1, 2, 3]))
        self.assertTrue(deep_equal([], []))
        self.assertFalse(deep_equal([1, 2, 3], [3, 2, 1]))
        self.assertFalse(deep_equal(["g1", "g2"], ["g2", "g1"]))
        self.assertFalse(deep_equal([1, 2], [1, 2, 3]))

    def test_list_never_equals_mapping(self):
        """Index-like keys do not make a dict a list."""
        self.assertFalse(deep_equal([1, 2], {0: 1, 1: 2}))
        self.assertFalse(deep_equal({0: 1, 1: 2}, [1, 2]))
        self.assertFalse(deep_equal([], {}))

    def test_container_never_equals_scalar(self):
        """A collection is not equal to a scalar."""
        self.assertFalse(deep_equal({}, None))
        self.assertFalse(deep_equal([], 0))
        self.assertFalse(deep_equal("ab", ["a", "b"]))

    def test_mappings_ignore_key_order(self):
        """Key insertion order is irrelevant."""
        self.assertTrue(deep_equal({"a": 1, "b": {"c": [1]}}, {"b": {"c": [1]}, "a": 1}))
        self.assertFalse(deep_equal({"a": 1}, {"a": 1, "b": 2}))
        self.assertFalse(deep_equal({"a": 1}, {"b": 1}))

    def test_nested_vpc_config_difference(self):
        """An extra security group is detected."""
        self.assertFalse(
            deep_equal(
                {"SubnetIds": ["s1"], "SecurityGroupIds": ["g1"]},
                {"SubnetIds": ["s1"], "SecurityGroupIds": ["g1", "g2"]},
            )
        )

    def test_deeply_nested_structures(self):
        """Deep but finite structures terminate."""
        a = b = 1
        for _ in range(100):
            a = {"k": [a]}
            b = {"k": [b]}
        self.assertTrue(deep_equal(a, b))

    def test_symmetry(self):
        """deep_equal(a, b) == deep_equal(b, a)."""
        samples = [
            None,
            0,
            False,
            "1",
            1,
            [],
            {},
            [1, 2],
            {0: 1, 1: 2},
            {"a": [1, {"b": None}]},
            {"a": [1, {"b": None}], "c": 1},
        ]
        for a in samples:
            for b in samples:
                self.assertEqual(deep_equal(a, b), deep_equal(b, a), (a, b))


class TestHasConfigurationChanged(unittest.TestCase):
    """Test has_configuration_changed diff decisions."""

    def test_no_live_state_means_changed(self):
        """Missing or empty live configuration always needs an update."""
        self.assertTrue(has_configuration_changed(None, {"Runtime": "a"}))
        self.assertTrue(has_configuration_changed({}, {"Runtime": "a"}))
        self.assertTrue(has_configuration_changed({}, {}))

    def test_identical_scalar_is_unchanged(self):
        """Same value, no update."""
        self.assertFalse(has_configuration_changed({"Runtime": "a"}, {"Runtime": "a"}))

    def test_different_scalar_is_logged(self):
        """A differing scalar is logged with old and new values."""
        with self.assertLogs("diff", level="INFO") as logs:
            changed = has_configuration_changed({"Runtime": "a"}, {"Runtime": "b"})

        self.assertTrue(changed)
        self.assertEqual(len(logs.output), 1)
        self.assertIn("Runtime", logs.output[0])
        self.assertIn("a -> b", logs.output[0])

    def test_undefined_fields_are_ignored(self):
        """Unsupplied (None) fields never cause an update."""
        self.assertFalse(
            has_configuration_changed({"MemorySize": 256}, {"MemorySize": 256, "Timeout": None})
        )

    def test_absent_field_ignores_any_live_value(self):
        """A field the caller omitted cannot trigger an update."""
        for live_timeout in (3, 900, None, "", [], {"x": 1}):
            live = {"MemorySize": 128, "Timeout": live_timeout}
            self.assertFalse(has_configuration_changed(live, {"MemorySize": 128}))

    def test_environment_change_logs_field_name(self):
        """Nested environment differences are detected and logged once."""
        with self.assertLogs("diff", level="INFO") as logs:
            changed = has_configuration_changed(
                {"Environment": {"Variables": {"ENV": "dev"}}},
                {"Environment": {"Variables": {"ENV": "prod"}}},
            )

        self.assertTrue(changed)
        self.assertEqual(len(logs.output), 1)
        self.assertIn("Environment", logs.output[0])

    def test_field_missing_from_live_is_changed(self):
        """A supplied field the live config lacks is a difference."""
        with self.assertLogs("diff", level="INFO") as logs:
            changed = has_configuration_changed({"Runtime": "a"}, {"Layers": ["arn:1"]})

        self.assertTrue(changed)
        self.assertIn("Configuration difference detected in Layers", logs.output[0])

    def test_none_live_collection_compares_as_empty_mapping(self):
        """A null live value for a structured field is treated as {}."""
        self.assertTrue(
            has_configuration_changed(
                {"Runtime": "a", "DeadLetterConfig": None},
                {"DeadLetterConfig": {"TargetArn": "arn:sqs"}},
            )
        )

    def test_all_differences_are_logged(self):
        """The scan does not stop at the first difference."""
        live = {"Runtime": "a", "MemorySize": 128, "Timeout": 3, "Handler": "h"}
        desired = {"Runtime": "b", "MemorySize": 256, "Timeout": 3, "Handler": "h"}

        with self.assertLogs("diff", level="INFO") as logs:
            changed = has_configuration_changed(live, desired)

        self.assertTrue(changed)
        self.assertEqual(len(logs.output), 2)
        self.assertTrue(any("Runtime" in line for line in logs.output))
        self.assertTrue(any("MemorySize" in line for line in logs.output))

    def test_live_extra_fields_are_ignored(self):
        """Server-populated fields do not count as differences."""
        live = {
            "FunctionName": "fn",
            "FunctionArn": "arn:aws:lambda:us-east-1:123456789012:function:fn",
            "Runtime": "python3.12",
            "MemorySize": 128,
            "VpcConfig": {"SubnetIds": ["s1"], "SecurityGroupIds": ["g1"], "VpcId": "vpc-1"},
        }

        self.assertFalse(has_configuration_changed(live, {"Runtime": "python3.12"}))

    def test_vpc_config_with_different_groups_is_changed(self):
        """VpcConfig security group changes are detected."""
        live = {"VpcConfig": {"SubnetIds": ["s1"], "SecurityGroupIds": ["g1"]}}
        desired = {"VpcConfig": {"SubnetIds": ["s1"], "SecurityGroupIds": ["g1", "g2"]}}

        self.assertTrue(has_configuration_changed(live, desired))

    def test_reordered_layers_are_changed(self):
        """List order is significant."""
        live = {"Layers": ["arn:1", "arn:2"]}
        desired = {"Layers": ["arn:2", "arn:1"]}

        self.assertTrue(has_configuration_changed(live, desired))

    def test_boolean_not_equal_to_integer(self):
        """Strict scalar comparison in the diff."""
        self.assertTrue(has_configuration_changed({"Flag": 1}, {"Flag": True}))


if __name__ == "__main__":
    unittest.main()
