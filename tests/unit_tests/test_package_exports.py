"""
Unit tests for the src package exports.
"""

import importlib
import unittest

import deployer
import models


class TestPackageExports(unittest.TestCase):
    """Test the names re-exported by src/__init__.py."""

    def test_public_names(self):
        """The package exposes the deployer entry points and models."""
        package = importlib.import_module("src")

        for name in package.__all__:
            self.assertTrue(hasattr(package, name), name)
        self.assertIs(package.FunctionDeployer, deployer.FunctionDeployer)
        self.assertIs(package.DeployResult, models.DeployResult)


if __name__ == "__main__":
    unittest.main()
