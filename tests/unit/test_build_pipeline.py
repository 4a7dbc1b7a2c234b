"""
构建管道单元测试

测试构建管道、构建步骤、构建上下文等核心功能。
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from debpkg.build.build_context import (
    BuildContext,
    BuildError,
    PackageIOError,
    ValidationError,
)
from debpkg.build.build_pipeline import BuildPipeline
from debpkg.build.steps import (
    BuildStep,
    ContainerAssemblyStep,
    ControlArchiveStep,
    DigestSigningStep,
    VerifyStep,
)


class MockBuildStep(BuildStep):
    """模拟构建步骤"""

    def __init__(self, name="mock", progress_range=(0, 100), error=None):
        super().__init__(name, f"Mock step {name}")
        self._progress_range = progress_range
        self._error = error
        self.execute_called = False

    def get_progress_range(self):
        return self._progress_range

    def execute(self, context):
        self.execute_called = True
        if self._error:
            raise self._error
        context.build_stats['mock_processed'] = True


class TestBuildStep:
    """BuildStep 基类测试"""

    def test_build_step_interface(self):
        step = MockBuildStep()

        assert step.name == "mock"
        assert step.description == "Mock step mock"
        assert step.get_progress_range() == (0, 100)
        assert step.should_run(MagicMock())

    def test_abstract(self):
        with pytest.raises(TypeError):
            BuildStep("x", "y")


class TestBuildContext:
    """BuildContext 测试"""

    def test_init(self):
        package = MagicMock()
        context = BuildContext(package=package, output_path=Path("out.deb"))

        assert context.package is package
        assert context.signer is None
        assert context.digest is None
        assert context.clearsigned is None
        assert context.build_stats['installed_size'] == 0

    def test_report(self):
        callback = MagicMock()
        context = BuildContext(package=MagicMock(), output_path=Path("out.deb"), progress_callback=callback)

        context.report("stage", 50, "half")

        callback.assert_called_once_with("stage", 50, 100, "half")

    def test_report_without_callback(self):
        BuildContext(package=MagicMock(), output_path=Path("out.deb")).report("stage", 10)


class TestBuildPipeline:
    """BuildPipeline 测试"""

    def test_steps(self):
        steps = BuildPipeline().get_steps()

        assert [type(s) for s in steps] == [VerifyStep, ControlArchiveStep, DigestSigningStep, ContainerAssemblyStep]
        assert [s.name for s in steps] == ["verify", "control", "sign", "assemble"]

    def test_validate_pipeline(self):
        assert BuildPipeline().validate_pipeline() == []

    def test_validate_pipeline_gaps(self):
        pipeline = BuildPipeline([MockBuildStep("a", (0, 40)), MockBuildStep("b", (50, 90))])

        errors = pipeline.validate_pipeline()

        assert len(errors) == 2
        assert "'b'" in errors[0]
        assert "90%" in errors[1]

    def test_validate_empty_pipeline(self):
        pipeline = BuildPipeline([])

        assert pipeline.validate_pipeline() == ["管道为空"]

    def test_signing_step_skipped_without_signer(self):
        step = DigestSigningStep()

        assert not step.should_run(BuildContext(package=MagicMock(), output_path=Path("x")))
        assert step.should_run(BuildContext(package=MagicMock(), output_path=Path("x"), signer=MagicMock()))

    def test_skipped_step_not_executed(self):
        step = MockBuildStep()
        step.should_run = lambda context: False

        BuildPipeline([step]).execute(MagicMock(), Path("out.deb"))

        assert not step.execute_called

    def test_execute_success(self):
        step = MockBuildStep()
        pipeline = BuildPipeline([step])

        context = pipeline.execute(MagicMock(), Path("out.deb"))

        assert step.execute_called
        assert context.build_stats['mock_processed']
        assert context.build_stats['end_time'] >= context.build_stats['start_time']

    def test_validation_error_propagates(self):
        """VerifyStep 的校验错误原样抛出"""
        package = MagicMock()
        package.metadata.verify.side_effect = ValidationError("empty package name")
        pipeline = BuildPipeline()

        with pytest.raises(ValidationError, match="empty package name"):
            pipeline.execute(package, Path("out.deb"))

        package.control.finalize.assert_not_called()

    def test_unexpected_error_wrapped(self):
        """意外异常包装为 BuildError 并保留原因"""
        cause = RuntimeError("boom")
        pipeline = BuildPipeline([MockBuildStep(error=cause)])

        with pytest.raises(BuildError) as exc_info:
            pipeline.execute(MagicMock(), Path("out.deb"))

        assert exc_info.value.__cause__ is cause

    def test_os_error_wrapped(self):
        pipeline = BuildPipeline([MockBuildStep(error=OSError("disk full"))])

        with pytest.raises(PackageIOError, match="disk full"):
            pipeline.execute(MagicMock(), Path("out.deb"))
