"""Evaluation framework for the fault parser and classifier."""

import json
from typing import Dict, List, Tuple
from dataclasses import dataclass, asdict, field

from error_analyzer.parser.fault_parser import FaultParser
from error_analyzer.classifier.fault_classifier import FaultClassifier
from error_analyzer.recommender.recommendation_engine import RecommendationEngine
from error_analyzer.evaluation.synthetic_generator import generate_synthetic_test_cases, GroundTruth


@dataclass
class EvaluationMetrics:
    """Metrics for evaluation results."""
    total_cases: int
    type_accuracy: float
    language_accuracy: float
    class_accuracy: float
    line_accuracy: float
    severity_accuracy: float
    overall_accuracy: float
    avg_fix_count: float
    errors: List[Dict] = field(default_factory=list)


class FaultAnalysisEvaluator:
    """Evaluates parsing and classification against labelled messages."""

    FIELDS = ["error_type", "language", "class_name", "line_number", "severity"]

    def __init__(self):
        """Initialize evaluator."""
        self.parser = FaultParser()
        self.classifier = FaultClassifier()
        self.engine = RecommendationEngine()
        self.results = []

    def evaluate(self, test_cases: List[Tuple[str, GroundTruth]]) -> EvaluationMetrics:
        """Run evaluation on test cases.

        Args:
            test_cases: List of (error_message, ground_truth) tuples

        Returns:
            EvaluationMetrics with results
        """
        print(f"Evaluating {len(test_cases)} test cases...")

        correct = {name: 0 for name in self.FIELDS}
        total_fixes = 0
        errors = []

        for i, (message, ground_truth) in enumerate(test_cases):
            print(f"Processing case {i+1}/{len(test_cases)}...", end="\r")

            try:
                fault = self.parser.parse(message)
                classification = self.classifier.classify(fault)
                report = self.engine.recommend(fault)

                predicted = {
                    "error_type": fault.error_type,
                    "language": fault.language.value,
                    "class_name": fault.class_name,
                    "line_number": fault.line_number,
                    "severity": classification.severity.value,
                }
                matches = {name: predicted[name] == getattr(ground_truth, name) for name in self.FIELDS}
                for name, matched in matches.items():
                    if matched:
                        correct[name] += 1

                total_fixes += len(report.suggested_fixes)

                self.results.append({
                    "case_id": i,
                    "ground_truth": asdict(ground_truth),
                    "predicted": predicted,
                    "fix_count": len(report.suggested_fixes),
                    "correct": matches
                })

            except Exception as e:
                errors.append({
                    "case_id": i,
                    "error": str(e),
                    "ground_truth": asdict(ground_truth)
                })

        print()  # New line after progress

        # Calculate metrics
        total = len(test_cases)

        def accuracy(name: str) -> float:
            return correct[name] / total if total > 0 else 0.0

        metrics = EvaluationMetrics(
            total_cases=total,
            type_accuracy=accuracy("error_type"),
            language_accuracy=accuracy("language"),
            class_accuracy=accuracy("class_name"),
            line_accuracy=accuracy("line_number"),
            severity_accuracy=accuracy("severity"),
            overall_accuracy=sum(correct.values()) / (total * len(self.FIELDS)) if total > 0 else 0.0,
            avg_fix_count=total_fixes / total if total > 0 else 0.0,
            errors=errors
        )

        return metrics

    def save_results(self, filename: str, metrics: EvaluationMetrics):
        """Save evaluation results to file.

        Args:
            filename: Output filename
            metrics: Evaluation metrics to save
        """
        output = {
            "metrics": asdict(metrics),
            "detailed_results": self.results
        }

        with open(filename, 'w') as f:
            json.dump(output, f, indent=2)

        print(f"Results saved to {filename}")

    def print_report(self, metrics: EvaluationMetrics):
        """Print evaluation report."""
        print("\n" + "=" * 60)
        print("EVALUATION REPORT")
        print("=" * 60)
        print(f"\nTotal Test Cases: {metrics.total_cases}")
        print("\nParser Accuracy:")
        print(f"  Type:     {metrics.type_accuracy:.2%}")
        print(f"  Language: {metrics.language_accuracy:.2%}")
        print(f"  Class:    {metrics.class_accuracy:.2%}")
        print(f"  Line:     {metrics.line_accuracy:.2%}")
        print("\nClassifier Accuracy:")
        print(f"  Severity: {metrics.severity_accuracy:.2%}")
        print(f"\nOverall:    {metrics.overall_accuracy:.2%}")
        print(f"Avg Fixes:  {metrics.avg_fix_count:.2f}")

        if metrics.errors:
            print(f"\nErrors Encountered: {len(metrics.errors)}")
            for error in metrics.errors[:5]:  # Show first 5
                print(f"  - Case {error['case_id']}: {error['error']}")

        print("=" * 60 + "\n")


def run_evaluation(test_case_count: int = 30, output_file: str = "evaluation_results.json") -> EvaluationMetrics:
    """Run complete evaluation.

    Args:
        test_case_count: Number of synthetic test cases to generate
        output_file: Where to write the detailed results

    Returns:
        EvaluationMetrics
    """
    print(f"Generating {test_case_count} synthetic test cases...")
    test_cases = generate_synthetic_test_cases(test_case_count)

    evaluator = FaultAnalysisEvaluator()
    metrics = evaluator.evaluate(test_cases)

    evaluator.print_report(metrics)
    evaluator.save_results(output_file, metrics)

    return metrics


if __name__ == "__main__":
    import sys

    count = int(sys.argv[1]) if len(sys.argv) > 1 else 30

    run_evaluation(test_case_count=count)
