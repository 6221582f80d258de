# Acme Viewer guide
Open guide.html in a browser.
=== END FILE ===
"""

VALIDATION_PASSED = json.dumps({
    "validation_passed": True,
    "overall_score": 92,
    "critical_issues": [],
    "warnings": [],
})

PLAN_RESPONSE = json.dumps({
    "complexity": "simple",
    "estimated_elements": 2,
    "estimated_time": 45,
    "estimated_cost": 0.1,
})

HAPPY_PATH: Dict[str, str] = {
    PLANNER_ROLE: PLAN_RESPONSE,
    ANALYST_ROLE: ANALYSIS_RESPONSE,
    CONTENT_ROLE: CONTENT_RESPONSE,
    BUILDER_ROLE: BUILD_RESPONSE,
    VALIDATOR_ROLE: VALIDATION_PASSED,
}


# ---------------------------------------------------------------------------
# SCRIPTED PROVIDER
# ---------------------------------------------------------------------------

class ScriptedProvider(AIProvider):
    """
    Provider that answers from a role -> response table.

    A value may be a string (successful response) or an AIResponse
    (e.g. a failure). Every call is recorded in ``calls``.
    """

    provider_type = ProviderType.ANTHROPIC

    def __init__(self, responses: Dict[str, Union[str, AIResponse]], usage: Optional[TokenUsage] = None):
        self.responses = dict(responses)
        self.usage = usage or TokenUsage(prompt_tokens=100, completion_tokens=50)
        self.calls: List[dict] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        model: Optional[str] = None,
        images: Optional[Sequence[ImageAttachment]] = None,
        **kwargs
    ) -> AIResponse:
        self.calls.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "model": model,
            "images": list(images or ()),
        })
        answer = self.responses.get(system_prompt)
        if answer is None:
            return self._create_error_response("No scripted response for role", model or "test-model")
        if isinstance(answer, AIResponse):
            return answer
        return AIResponse(
            content=answer,
            provider=self.provider_type,
            model=model or "test-model",
            usage=TokenUsage(self.usage.prompt_tokens, self.usage.completion_tokens),
        )

    def roles_called(self) -> List[Optional[str]]:
        return [call["system_prompt"] for call in self.calls]


def failed_response(error: str = "Rate limit exceeded") -> AIResponse:
    return AIResponse(content="", provider=ProviderType.ANTHROPIC, model="test-model", success=False, error=error)


def build_pipeline(provider: AIProvider, monitor: AIMonitor, dump_dir: Path) -> DocumentationPipeline:
    """Pipeline whose stages dump unparseable output into ``dump_dir``."""
    return DocumentationPipeline(
        planning=PlanningStage(provider, monitor, debug_dump_dir=str(dump_dir)),
        analysis=AnalysisStage(provider, monitor, debug_dump_dir=str(dump_dir)),
        content=ContentStage(provider, monitor, debug_dump_dir=str(dump_dir)),
        build=BuildStage(provider, monitor, debug_dump_dir=str(dump_dir)),
        validation=ValidationStage(provider, monitor, debug_dump_dir=str(dump_dir)),
        monitor=monitor,
    )


# ---------------------------------------------------------------------------
# PIPELINE FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def screenshot() -> Screenshot:
    return Screenshot(data=PNG_BYTES, filename="acme.png", mimetype="image/png")


@pytest.fixture
def job_context(screenshot: Screenshot) -> JobContext:
    return JobContext(screenshot=screenshot, app_name="Acme Viewer", description="desktop tool")


@pytest.fixture
def monitor() -> AIMonitor:
    return AIMonitor()


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider(HAPPY_PATH)


@pytest.fixture
def pipeline(provider: ScriptedProvider, monitor: AIMonitor, tmp_path: Path) -> DocumentationPipeline:
    return build_pipeline(provider, monitor, tmp_path)


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    path = tmp_path / "acme.png"
    path.write_bytes(PNG_BYTES)
    return path


# ---------------------------------------------------------------------------
# API FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def services(pipeline: DocumentationPipeline, tmp_path: Path) -> ServiceContainer:
    return build_services(
        pipeline,
        upload_dir=tmp_path / "uploads",
        output_dir=tmp_path / "output",
        temp_dir=tmp_path / "temp",
    )


@pytest.fixture(scope="function")
def client(db: Session, services: ServiceContainer) -> Generator[TestClient, None, None]:
    """
    Test client with the test database and the scripted pipeline.

    Overrides the get_db dependency to use our test database.
    """
    app = create_app(services)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
