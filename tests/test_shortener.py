import pytest

from srtalign import shortener as shortener_module
from srtalign.exceptions import ShorteningError
from srtalign.shortener import HuggingFaceShortener


class FakeTensor:
    def to(self, device):
        return self


class FakeTokenizer:
    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt, **kwargs):
        self.prompts.append(prompt)
        return {'input_ids': FakeTensor(), 'attention_mask': FakeTensor()}

    def decode(self, tokens, skip_special_tokens=True):
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeModel:
    def to(self, device):
        self.device = device
        return self

    def eval(self):
        return self

    def generate(self, **kwargs):
        return [[0]]


@pytest.fixture
def install_model(monkeypatch):
    def install(answers):
        tokenizer = FakeTokenizer(answers)
        monkeypatch.setattr(shortener_module.AutoTokenizer, "from_pretrained", lambda name: tokenizer)
        monkeypatch.setattr(shortener_module.AutoModelForSeq2SeqLM, "from_pretrained", lambda name: FakeModel())
        return tokenizer
    return install


def test_short_enough_answer_is_returned_without_retry(install_model):
    tokenizer = install_model(['"A short line"'])
    result = HuggingFaceShortener(device="cpu").shorten("A much longer line that goes on", 20)

    assert result == "A short line"
    assert len(tokenizer.prompts) == 1
    assert "20 characters" in tokenizer.prompts[0]


def test_too_long_answer_triggers_one_stricter_retry(install_model):
    tokenizer = install_model(["still a very long answer indeed", "short"])
    result = HuggingFaceShortener(device="cpu").shorten("original text that is long", 10)

    assert result == "short"
    assert len(tokenizer.prompts) == 2
    assert "strict limit" in tokenizer.prompts[1]


def test_oversized_answer_is_still_returned(install_model):
    install_model(["far too long answer", "also far too long"])
    assert HuggingFaceShortener(device="cpu").shorten("original", 5) == "also far too long"


def test_empty_text_is_not_sent_to_the_model(install_model):
    tokenizer = install_model([])
    assert HuggingFaceShortener(device="cpu").shorten("   ", 10) == ""
    assert tokenizer.prompts == []


def test_model_failures_become_shortening_errors(install_model):
    install_model([RuntimeError("boom")])
    with pytest.raises(ShorteningError):
        HuggingFaceShortener(device="cpu").shorten("some text", 10)

    install_model([""])
    with pytest.raises(ShorteningError):
        HuggingFaceShortener(device="cpu").shorten("some text", 10)


def test_load_failure_raises(monkeypatch):
    def fail(name):
        raise OSError("no such model")
    monkeypatch.setattr(shortener_module.AutoTokenizer, "from_pretrained", fail)
    with pytest.raises(ShorteningError):
        HuggingFaceShortener(model_name="missing/model", device="cpu")


def test_invalid_device(install_model):
    install_model([])
    with pytest.raises(ValueError):
        HuggingFaceShortener(device="tpu")
