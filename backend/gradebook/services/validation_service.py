import math
import uuid

from sqlalchemy.orm import Session

from gradebook.core.errors import ConfigurationError, NotFoundError
from gradebook.models.classroom import SchoolClass
from gradebook.models.term import TermStructure
from gradebook.schemas.gradebook import ConfigurationAudit, TermWeightIssue
from gradebook.services.assessment_service import assessment_service
from gradebook.services.gradebook_service import gradebook_service

EXPECTED_PERIOD_WEIGHT_SUM = 100.0


class ValidationService:
    """Flags grading configuration that computes silently but probably wrongly."""

    def audit_class_configuration(self, db: Session, class_id: uuid.UUID) -> ConfigurationAudit:
        school_class = db.get(SchoolClass, class_id)
        if not school_class:
            raise NotFoundError("Class", class_id)

        audit = ConfigurationAudit(class_id=class_id)
        program_id = school_class.class_group.program_id

        for subject in school_class.class_group.subjects:
            if not subject.credits:
                audit.zero_credit_subject_ids.append(subject.id)
            if not subject.subject_config:
                audit.unconfigured_subject_ids.append(subject.id)

        term_structure = None
        if school_class.term_structure_id:
            term_structure = db.get(TermStructure, school_class.term_structure_id)
        if term_structure is None:
            term_structure = gradebook_service.resolve_term_structure(db, program_id)
        if term_structure is None:
            audit.missing_configuration.append("No active term structure for program")
        else:
            for term in term_structure.academic_terms:
                weight_sum = sum(period.weight or 0.0 for period in term.assessment_periods)
                if not math.isclose(weight_sum, EXPECTED_PERIOD_WEIGHT_SUM, abs_tol=1e-6):
                    audit.unbalanced_terms.append(
                        TermWeightIssue(term_id=term.id, term_name=term.name, weight_sum=weight_sum)
                    )

        # An initialized gradebook keeps the system it was created with.
        gradebook = gradebook_service.find_gradebook_for_class(db, class_id)
        if gradebook is not None:
            assessment_system = gradebook.assessment_system
        else:
            assessment_system = gradebook_service.resolve_assessment_system(db, program_id)
        if assessment_system is None:
            audit.missing_configuration.append("No active assessment system for program")
        else:
            try:
                assessment_service.get_gpa_scale(assessment_system)
            except ConfigurationError as exc:
                audit.gpa_scale_error = exc.message

        return audit


validation_service = ValidationService()
