"""
Declarative map of which tests need a private database.
"""
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml


class IsolationPolicy:
    """
    Maps test ids and class ids to whether they need an isolated database.

    A test is isolated when its own entry or its class entry says so.
    Ids that do not appear are not isolated.
    """
    def __init__(self,
                 tests: Optional[Mapping[str, bool]] = None,
                 classes: Optional[Mapping[str, bool]] = None):
        """
        Initializes the policy.

        :param tests: Isolation flag per test id.
        :param classes: Isolation flag per class id.
        """
        self.tests: Dict[str, bool] = dict(tests or {})
        self.classes: Dict[str, bool] = dict(classes or {})

    @classmethod
    def from_yaml(cls, path: str) -> "IsolationPolicy":
        """
        Loads a policy from a YAML file with 'isolated_tests' and
        'isolated_classes' lists.

        :param path: Path to the YAML file.
        :return: The policy.
        """
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return cls.from_mapping(data or {})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "IsolationPolicy":
        """
        Creates a policy from parsed YAML data.
        """
        if not isinstance(data, Mapping):
            raise ValueError("Isolation file must contain a mapping")
        return cls(
            tests=cls._flags(data.get('isolated_tests')),
            classes=cls._flags(data.get('isolated_classes')),
        )

    @staticmethod
    def _flags(ids: Optional[Iterable[str]]) -> Dict[str, bool]:
        if ids is None:
            return {}
        if isinstance(ids, str):
            ids = [ids]
        return {str(i): True for i in ids}

    def isolate_test(self, test_id: str, isolated: bool = True):
        self.tests[test_id] = isolated

    def isolate_class(self, class_id: str, isolated: bool = True):
        self.classes[class_id] = isolated

    def merge(self, other: "IsolationPolicy") -> "IsolationPolicy":
        """
        Adds the entries of another policy; entries of the other policy win.
        """
        self.tests.update(other.tests)
        self.classes.update(other.classes)
        return self

    def is_isolated(self, test_id: str, class_id: Optional[str] = None) -> bool:
        """
        Whether the test, or the class it belongs to, needs an isolated database.
        """
        if self.tests.get(test_id, False):
            return True
        return class_id is not None and self.classes.get(class_id, False)
