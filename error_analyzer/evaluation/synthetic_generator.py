"""Synthetic error message generator for testing."""

import random
from typing import List, Optional, Tuple
from dataclasses import dataclass


@dataclass
class GroundTruth:
    """Ground truth labels for a test case."""
    error_type: str
    language: str
    class_name: Optional[str]
    line_number: Optional[int]
    severity: str
    description: str


class SyntheticErrorGenerator:
    """Generates synthetic error messages based on base templates."""

    APEX_NULL_POINTER_TEMPLATE = """System.NullPointerException: Attempt to de-reference a null object

Class.{class_name}.{method_name}: line {line}, column {column}
Class.{caller}.execute: line {caller_line}, column 1"""

    APEX_LIMIT_TEMPLATE = """System.LimitException: Too many SOQL queries: 101

Class.{class_name}.{method_name}: line {line}, column 1"""

    APEX_INVALID_ID_TEMPLATE = """Apex script unhandled exception by user/organization: {user_id}/{org_id}

Exception Type: System.StringException
Exception Message: Invalid id: {bad_id}
Class.{class_name}.{method_name}: line {line}, column 1"""

    APEX_DML_TEMPLATE = """System.DmlException: Insert failed. First exception on row 0; first error: REQUIRED_FIELD_MISSING, Required fields are missing: [{field}]: [{field}]

Class.{class_name}.{method_name}: line {line}, column 1"""

    JAVASCRIPT_TYPE_ERROR_TEMPLATE = """TypeError: Cannot read properties of undefined (reading '{property}')
    at {function} (src/{module}.js:{line}:{column})
    at processTicksAndRejections (node:internal/process/task_queues:95:5)"""

    JAVA_NULL_POINTER_TEMPLATE = """Exception in thread "main" java.lang.NullPointerException: Cannot invoke "String.length()" because "{variable}" is null
\tat com.acme.{class_name}.{method_name}({class_name}.java:{line})
\tat com.acme.Main.main(Main.java:12)"""

    PYTHON_KEY_ERROR_TEMPLATE = """Traceback (most recent call last):
  File "app/main.py", line 8, in <module>
    run()
  File "app/{module}.py", line {line}, in {function}
    total = order["{key}"]
KeyError: '{key}'"""

    CLASS_NAMES = ["AccountHandler", "OpportunityService", "ContactTriggerHandler", "LeadProcessor", "CaseRouter"]
    METHOD_NAMES = ["processAccounts", "handleInsert", "updateRecords", "validate", "execute"]
    JS_FUNCTIONS = ["processOrder", "renderCart", "loadProfile", "handleSubmit"]
    JS_MODULES = ["orders", "cart", "profile", "checkout"]
    PY_MODULES = ["billing", "orders", "invoices"]
    FIELDS = ["Name", "LastName", "StageName", "CloseDate"]

    def __init__(self, seed: Optional[int] = None):
        self.random = random.Random(seed)
        self.builders = [
            self._generate_apex_null_pointer,
            self._generate_apex_limit,
            self._generate_apex_invalid_id,
            self._generate_apex_dml,
            self._generate_javascript_type_error,
            self._generate_java_null_pointer,
            self._generate_python_key_error,
        ]

    def generate_test_cases(self, count: int = 30) -> List[Tuple[str, GroundTruth]]:
        """Generate synthetic test cases with ground truth.

        Args:
            count: Number of test cases to generate

        Returns:
            List of (error_message, ground_truth) tuples
        """
        # Cycle through every template so each kind is represented
        test_cases = [self.builders[i % len(self.builders)]() for i in range(count)]

        # Shuffle to mix them up
        self.random.shuffle(test_cases)

        return test_cases

    def _generate_apex_null_pointer(self) -> Tuple[str, GroundTruth]:
        class_name = self.random.choice(self.CLASS_NAMES)
        line = self.random.randint(10, 300)
        message = self.APEX_NULL_POINTER_TEMPLATE.format(
            class_name=class_name,
            method_name=self.random.choice(self.METHOD_NAMES),
            line=line,
            column=self.random.randint(1, 40),
            caller="BatchRunner",
            caller_line=self.random.randint(10, 99),
        )
        return message, GroundTruth(
            error_type="NullPointerException",
            language="apex",
            class_name=class_name,
            line_number=line,
            severity="high",
            description="Null dereference in an Apex class"
        )

    def _generate_apex_limit(self) -> Tuple[str, GroundTruth]:
        class_name = self.random.choice(self.CLASS_NAMES)
        line = self.random.randint(10, 300)
        message = self.APEX_LIMIT_TEMPLATE.format(
            class_name=class_name,
            method_name=self.random.choice(self.METHOD_NAMES),
            line=line,
        )
        return message, GroundTruth(
            error_type="LimitException",
            language="apex",
            class_name=class_name,
            line_number=line,
            severity="critical",
            description="SOQL governor limit exceeded"
        )

    def _generate_apex_invalid_id(self) -> Tuple[str, GroundTruth]:
        class_name = self.random.choice(self.CLASS_NAMES)
        line = self.random.randint(10, 300)
        bad_id = "".join(self.random.choice("0123456789") for _ in range(self.random.choice([8, 11, 12, 16])))
        message = self.APEX_INVALID_ID_TEMPLATE.format(
            user_id="005000000000001",
            org_id="00D000000000001",
            bad_id=bad_id,
            class_name=class_name,
            method_name=self.random.choice(self.METHOD_NAMES),
            line=line,
        )
        return message, GroundTruth(
            error_type="StringException",
            language="apex",
            class_name=class_name,
            line_number=line,
            severity="high",
            description="Invalid Salesforce record id"
        )

    def _generate_apex_dml(self) -> Tuple[str, GroundTruth]:
        class_name = self.random.choice(self.CLASS_NAMES)
        line = self.random.randint(10, 300)
        message = self.APEX_DML_TEMPLATE.format(
            field=self.random.choice(self.FIELDS),
            class_name=class_name,
            method_name=self.random.choice(self.METHOD_NAMES),
            line=line,
        )
        return message, GroundTruth(
            error_type="DmlException",
            language="apex",
            class_name=class_name,
            line_number=line,
            severity="high",
            description="Required field missing on insert"
        )

    def _generate_javascript_type_error(self) -> Tuple[str, GroundTruth]:
        line = self.random.randint(5, 200)
        message = self.JAVASCRIPT_TYPE_ERROR_TEMPLATE.format(
            property=self.random.choice(["id", "length", "map", "name"]),
            function=self.random.choice(self.JS_FUNCTIONS),
            module=self.random.choice(self.JS_MODULES),
            line=line,
            column=self.random.randint(1, 60),
        )
        return message, GroundTruth(
            error_type="TypeError",
            language="javascript",
            class_name=None,
            line_number=line,
            severity="error",
            description="Property read on undefined in JavaScript"
        )

    def _generate_java_null_pointer(self) -> Tuple[str, GroundTruth]:
        class_name = self.random.choice(["OrderService", "InvoiceRepository", "UserController"])
        line = self.random.randint(20, 400)
        message = self.JAVA_NULL_POINTER_TEMPLATE.format(
            variable=self.random.choice(["name", "code", "<local1>"]),
            class_name=class_name,
            method_name=self.random.choice(["process", "load", "save"]),
            line=line,
        )
        return message, GroundTruth(
            error_type="NullPointerException",
            language="java",
            class_name=class_name,
            line_number=line,
            severity="high",
            description="Null dereference in a Java service"
        )

    def _generate_python_key_error(self) -> Tuple[str, GroundTruth]:
        line = self.random.randint(10, 150)
        message = self.PYTHON_KEY_ERROR_TEMPLATE.format(
            module=self.random.choice(self.PY_MODULES),
            line=line,
            function=self.random.choice(["compute_total", "apply_discount", "summarize"]),
            key=self.random.choice(["amount", "currency", "items"]),
        )
        return message, GroundTruth(
            error_type="KeyError",
            language="python",
            class_name=None,
            line_number=line,
            severity="error",
            description="Missing dictionary key in Python"
        )


def generate_synthetic_test_cases(count: int = 30, seed: Optional[int] = None) -> List[Tuple[str, GroundTruth]]:
    """Convenience function to generate test cases.

    Args:
        count: Number of test cases to generate
        seed: Optional seed for reproducible output

    Returns:
        List of (error_message, ground_truth) tuples
    """
    generator = SyntheticErrorGenerator(seed)
    return generator.generate_test_cases(count)
