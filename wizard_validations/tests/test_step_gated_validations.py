"""Tests for step-gated validation setup and evaluation."""

import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from wizard_validations import (
    InvalidConfiguration,
    RecordInvalid,
    StepGate,
    StepNotFound,
    UnknownStepPolicy,
    WizardConfig,
    WizardModel,
    WizardValidationsMixin,
    with_step_validations,
)
from wizard_validations.config import loader
from wizard_validations.validation import validations_for


@with_step_validations
class Signup(WizardModel):
    first_name: Optional[str] = None
    email: Optional[str] = None
    plan: Optional[str] = None

    @classmethod
    def wizard_steps(cls):
        return ["basic_details", "contact", "billing"]

    @classmethod
    def basic_details_validations(cls):
        return {"first_name": {"presence": True}}

    @classmethod
    def contact_validations(cls):
        return {"email": {"presence": True, "format": {"with": r"^[^@\s]+@[^@\s]+$"}}}

    @classmethod
    def billing_validations(cls):
        return {"plan": {"inclusion": ["free", "pro"]}}


class TestStepOrdering:
    """Test step queries on a model instance."""
    
    def test_all_wizard_steps(self):
        assert Signup.all_wizard_steps() == ["basic_details", "contact", "billing"]
    
    def test_previous_wizard_steps(self):
        assert Signup.previous_wizard_steps("contact") == ["basic_details"]
        assert Signup.previous_wizard_steps("basic_details") == []
    
    def test_instance_previous_steps(self):
        assert Signup(current_step="billing").previous_steps() == ["basic_details", "contact"]
    
    def test_current_and_previous(self):
        record = Signup(current_step="contact")
        assert record.current_and_previous_wizard_steps() == ["basic_details", "contact"]
    
    def test_current_and_previous_first_step(self):
        record = Signup(current_step="basic_details")
        assert record.current_and_previous_wizard_steps() == ["basic_details"]
    
    def test_unknown_current_step_defaults_to_empty_previous(self):
        """The default policy treats an unknown step as having no predecessors."""
        record = Signup(current_step="z")
        assert record.previous_steps() == []
        assert record.current_and_previous_wizard_steps() == ["z"]
    
    def test_not_started(self):
        record = Signup()
        assert record.previous_steps() == []
        assert record.current_and_previous_wizard_steps() == []


class TestGatedValidation:
    """Test that step validations only apply once the step is reached."""
    
    def test_gate_inactive_before_step(self):
        """No rule applies before the instance enters the wizard."""
        record = Signup()
        assert record.is_valid()
        assert record.errors.is_empty
    
    def test_first_step_rule_active(self):
        record = Signup(current_step="basic_details")
        
        assert not record.is_valid()
        assert record.errors["first_name"] == ["can't be blank"]
        assert "email" not in record.errors
    
    def test_first_step_satisfied(self):
        record = Signup(current_step="basic_details", first_name="Ada")
        assert record.is_valid()
    
    def test_previous_step_rules_stay_active(self):
        """Reaching a later step keeps earlier steps' rules in force."""
        record = Signup(current_step="contact", email="not-an-email")
        
        assert not record.is_valid()
        assert record.errors["first_name"] == ["can't be blank"]
        assert record.errors["email"] == ["is invalid"]
    
    def test_last_step(self):
        record = Signup(
            current_step="billing",
            first_name="Ada",
            email="ada@example.com",
            plan="enterprise",
        )
        
        assert not record.is_valid()
        assert record.errors.full_messages() == ["Plan is not included in the list"]
    
    def test_all_steps_satisfied(self):
        record = Signup(
            current_step="billing",
            first_name="Ada",
            email="ada@example.com",
            plan="pro",
        )
        assert record.is_valid()
    
    def test_unknown_current_step_only_matches_itself(self):
        record = Signup(current_step="z")
        assert record.is_valid()
    
    def test_validate_or_raise(self):
        record = Signup(current_step="basic_details")
        
        with pytest.raises(RecordInvalid) as exc_info:
            record.validate_or_raise()
        
        assert exc_info.value.record is record
        assert "First name can't be blank" in str(exc_info.value)
    
    def test_validation_does_not_reread_config(self, monkeypatch):
        """Step gates resolve settings from the cached config file."""
        Signup(current_step="contact").is_valid()
        reads = []
        real_load = loader.load_config
        monkeypatch.setattr(loader, "load_config", lambda *a, **kw: reads.append(a) or real_load(*a, **kw))
        
        for _ in range(3):
            Signup(current_step="billing", first_name="Ada", email="ada@example.org").is_valid()
        
        assert reads == []
    
    def test_gates_registered_per_step(self):
        gates = [v.conditions[0] for v in validations_for(Signup)]
        assert all(isinstance(g, StepGate) for g in gates)
        assert [g.step for g in gates] == ["basic_details", "contact", "billing"]


class TestSetupValidations:
    """Test the registrar."""
    
    def test_no_steps_registers_nothing(self):
        """A model without steps sets up cleanly and registers nothing."""
        class Plain(WizardValidationsMixin):
            pass
        
        assert Plain.all_wizard_steps() == []
        assert Plain.setup_validations() == []
        assert validations_for(Plain) == []
    
    def test_steps_without_hooks_are_skipped(self):
        class Partial(WizardModel):
            name: Optional[str] = None
            
            @classmethod
            def wizard_steps(cls):
                return ["one", "two"]
            
            @classmethod
            def two_validations(cls):
                return {"name": {"presence": True}}
        
        registered = Partial.setup_validations()
        
        assert len(registered) == 1
        assert registered[0].field == "name"
        assert Partial(current_step="one").is_valid()
        assert not Partial(current_step="two").is_valid()
    
    def test_setup_twice_duplicates_rules(self):
        """Registration is not deduplicated; each rule runs once per setup call."""
        class Twice(WizardModel):
            name: Optional[str] = None
            
            @classmethod
            def wizard_steps(cls):
                return ["one"]
            
            @classmethod
            def one_validations(cls):
                return {"name": {"presence": True}}
        
        Twice.setup_validations()
        Twice.setup_validations()
        record = Twice(current_step="one")
        
        assert len(validations_for(Twice)) == 2
        assert not record.is_valid()
        assert record.errors["name"] == ["can't be blank", "can't be blank"]
    
    def test_existing_if_condition_is_kept(self):
        """A hook's own condition combines with the step gate."""
        class Company(WizardModel):
            is_company: bool = False
            vat_number: Optional[str] = None
            
            @classmethod
            def wizard_steps(cls):
                return ["tax"]
            
            @classmethod
            def tax_validations(cls):
                return {"vat_number": {"presence": True, "if": "is_company"}}
        
        Company.setup_validations()
        
        assert Company(current_step="tax").is_valid()
        assert not Company(current_step="tax", is_company=True).is_valid()
        assert Company(is_company=True).is_valid()
    
    def test_step_gate_checked_before_hook_condition(self):
        """A hook condition naming state that only exists from its step on is not evaluated earlier."""
        class Shipment(WizardValidationsMixin):
            def __init__(self, current_step, **later_state):
                self.current_step = current_step
                self.tracking_code = None
                self.__dict__.update(later_state)
            
            @classmethod
            def wizard_steps(cls):
                return ["packing", "dispatch"]
            
            @classmethod
            def dispatch_validations(cls):
                return {"tracking_code": {"presence": True, "if": "needs_tracking"}}
        
        Shipment.setup_validations()
        
        assert Shipment("packing").is_valid()
        assert Shipment(None).is_valid()
        assert not Shipment("dispatch", needs_tracking=True).is_valid()
        assert Shipment("dispatch", needs_tracking=False).is_valid()
        
        validation = validations_for(Shipment)[0]
        assert isinstance(validation.conditions[0], StepGate)
        assert validation.conditions[1:] == ["needs_tracking"]
    
    def test_config_passed_at_setup(self):
        class Order(WizardModel):
            address: Optional[str] = None
        
        config = WizardConfig(
            steps_provider=lambda: ["cart", "shipping"],
            step_validations={"shipping": lambda: {"address": {"presence": True}}},
        )
        Order.setup_validations(config=config)
        
        assert Order.wizard_config is config
        assert Order(current_step="cart").is_valid()
        assert not Order(current_step="shipping").is_valid()
    
    def test_misconfigured_steps_provider_raises(self):
        class Broken(WizardValidationsMixin):
            wizard_config = WizardConfig(steps_provider=["a", "b"])
        
        with pytest.raises(InvalidConfiguration):
            Broken.setup_validations()
    
    def test_hook_errors_propagate(self):
        """Errors raised inside a hook are not swallowed."""
        class Failing(WizardValidationsMixin):
            @classmethod
            def wizard_steps(cls):
                return ["one"]
            
            @classmethod
            def one_validations(cls):
                raise KeyError("rules")
        
        with pytest.raises(KeyError):
            Failing.setup_validations()
    
    def test_malformed_hook_result_raises(self):
        class Malformed(WizardValidationsMixin):
            @classmethod
            def wizard_steps(cls):
                return ["one"]
            
            @classmethod
            def one_validations(cls):
                return {"name": True}
        
        with pytest.raises(InvalidConfiguration, match="field=name"):
            Malformed.setup_validations()
    
    def test_unknown_rule_kind_raises(self):
        class Unknown(WizardValidationsMixin):
            @classmethod
            def wizard_steps(cls):
                return ["one"]
            
            @classmethod
            def one_validations(cls):
                return {"name": {"uniqueness": True}}
        
        with pytest.raises(InvalidConfiguration, match="uniqueness"):
            Unknown.setup_validations()
    
    def test_duplicate_steps_rejected(self):
        class Duplicated(WizardValidationsMixin):
            @classmethod
            def wizard_steps(cls):
                return ["one", "two", "one"]
        
        with pytest.raises(InvalidConfiguration, match="duplicated"):
            Duplicated.setup_validations()
    
    def test_duplicate_steps_allowed_when_disabled(self, monkeypatch):
        monkeypatch.setenv("WIZARD_VALIDATIONS_REJECT_DUPLICATE_STEPS", "false")
        
        class Duplicated(WizardValidationsMixin):
            @classmethod
            def wizard_steps(cls):
                return ["one", "two", "one"]
        
        assert Duplicated.setup_validations() == []


class TestUnknownStepPolicy:
    """Test the strict policy for steps outside the sequence."""
    
    def make_model(self, policy):
        class Strict(WizardModel):
            wizard_config = WizardConfig(unknown_step_policy=policy)
            name: Optional[str] = None
            
            @classmethod
            def wizard_steps(cls):
                return ["a", "b", "c"]
            
            @classmethod
            def a_validations(cls):
                return {"name": {"presence": True}}
        
        Strict.setup_validations()
        return Strict
    
    def test_raise_policy_on_class_lookup(self):
        model = self.make_model(UnknownStepPolicy.RAISE)
        
        with pytest.raises(StepNotFound):
            model.previous_wizard_steps("z")
    
    def test_raise_policy_during_validation(self):
        """Validating a record on an unknown step fails loudly."""
        model = self.make_model(UnknownStepPolicy.RAISE)
        
        with pytest.raises(StepNotFound):
            model(current_step="z").is_valid()
    
    def test_raise_policy_known_steps_unaffected(self):
        model = self.make_model(UnknownStepPolicy.RAISE)
        assert model(current_step="b").current_and_previous_wizard_steps() == ["a", "b"]
    
    def test_policy_from_environment(self, monkeypatch):
        monkeypatch.setenv("WIZARD_VALIDATIONS_UNKNOWN_STEP_POLICY", "raise")
        model = self.make_model(None)
        
        with pytest.raises(StepNotFound):
            model.previous_wizard_steps("z")
    
    def test_invalid_policy_value(self, monkeypatch):
        monkeypatch.setenv("WIZARD_VALIDATIONS_UNKNOWN_STEP_POLICY", "ignore")
        model = self.make_model(None)
        
        with pytest.raises(InvalidConfiguration, match="unknown_step_policy"):
            model.previous_wizard_steps("a")


class TestPlainMixin:
    """Test the mixin on a class that is not a pydantic model."""
    
    class Stage(str, Enum):
        PROFILE = "profile"
        REVIEW = "review"
    
    def test_enum_steps_and_custom_providers(self):
        Stage = self.Stage
        
        class Application(WizardValidationsMixin):
            wizard_config = WizardConfig(
                steps_provider="stages",
                current_step_provider="stage",
            )
            
            def __init__(self, stage, bio=None):
                self.stage = stage
                self.bio = bio
            
            @classmethod
            def stages(cls):
                return list(Stage)
            
            @classmethod
            def review_validations(cls):
                return {"bio": {"length": {"minimum": 10}}}
        
        Application.setup_validations()
        
        assert Application.all_wizard_steps() == ["profile", "review"]
        assert Application(Stage.PROFILE).is_valid()
        
        record = Application(Stage.REVIEW, bio="short")
        assert not record.is_valid()
        assert record.errors["bio"] == ["is too short (minimum is 10 characters)"]
    
    def test_errors_empty_before_validation(self):
        class Anything(WizardValidationsMixin):
            pass
        
        assert Anything().errors.is_empty
