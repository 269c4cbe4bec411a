"""Standard event and resource type names recorded in the audit chain.

Hosts may record any string; these enums keep the common vocabulary
consistent across services.
"""

from __future__ import annotations

from enum import StrEnum


class AuditEventType(StrEnum):
    # Documents and signatures
    DOCUMENT_VIEWED = "DOCUMENT_VIEWED"
    DOCUMENT_DOWNLOADED = "DOCUMENT_DOWNLOADED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    DOCUMENT_SIGNED = "DOCUMENT_SIGNED"
    DOCUMENT_COMPLETED = "DOCUMENT_COMPLETED"
    DOCUMENT_DECLINED = "DOCUMENT_DECLINED"
    DOCUMENT_FILED = "DOCUMENT_FILED"
    ENVELOPE_CREATED = "ENVELOPE_CREATED"
    ENVELOPE_SENT = "ENVELOPE_SENT"
    ENVELOPE_VOIDED = "ENVELOPE_VOIDED"

    # Subscriptions and money movement
    SUBSCRIPTION_CREATED = "SUBSCRIPTION_CREATED"
    SUBSCRIPTION_SIGNED = "SUBSCRIPTION_SIGNED"
    SUBSCRIPTION_PAYMENT_INITIATED = "SUBSCRIPTION_PAYMENT_INITIATED"
    SUBSCRIPTION_PAYMENT_COMPLETED = "SUBSCRIPTION_PAYMENT_COMPLETED"
    SUBSCRIPTION_PAYMENT_FAILED = "SUBSCRIPTION_PAYMENT_FAILED"
    WIRE_CONFIRMED = "WIRE_CONFIRMED"
    CAPITAL_CALL_CREATED = "CAPITAL_CALL_CREATED"
    CAPITAL_CALL_SENT = "CAPITAL_CALL_SENT"
    CAPITAL_CALL_PAID = "CAPITAL_CALL_PAID"
    DISTRIBUTION_CREATED = "DISTRIBUTION_CREATED"
    DISTRIBUTION_COMPLETED = "DISTRIBUTION_COMPLETED"

    # Investors and compliance checks
    INVESTOR_CREATED = "INVESTOR_CREATED"
    INVESTOR_UPDATED = "INVESTOR_UPDATED"
    INVESTOR_APPROVED = "INVESTOR_APPROVED"
    INVESTOR_REJECTED = "INVESTOR_REJECTED"
    ACCREDITATION_SUBMITTED = "ACCREDITATION_SUBMITTED"
    ACCREDITATION_APPROVED = "ACCREDITATION_APPROVED"
    ACCREDITATION_REJECTED = "ACCREDITATION_REJECTED"
    KYC_INITIATED = "KYC_INITIATED"
    KYC_COMPLETED = "KYC_COMPLETED"
    KYC_FAILED = "KYC_FAILED"
    AML_SCREENING = "AML_SCREENING"
    NDA_SIGNED = "NDA_SIGNED"

    # Accounts and administration
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_REGISTERED = "USER_REGISTERED"
    MFA_ENABLED = "MFA_ENABLED"
    MFA_DISABLED = "MFA_DISABLED"
    ADMIN_ACTION = "ADMIN_ACTION"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"
    DATA_EXPORT = "DATA_EXPORT"
    DATA_IMPORT = "DATA_IMPORT"

    # The audit log auditing itself
    AUDIT_LOG_EXPORT = "AUDIT_LOG_EXPORT"
    AUDIT_LOG_VERIFIED = "AUDIT_LOG_VERIFIED"


class ResourceType(StrEnum):
    DOCUMENT = "Document"
    SIGNATURE_DOCUMENT = "SignatureDocument"
    ENVELOPE = "Envelope"
    SUBSCRIPTION = "Subscription"
    TRANSACTION = "Transaction"
    INVESTMENT = "Investment"
    INVESTOR = "Investor"
    FUND = "Fund"
    USER = "User"
    ACCREDITATION = "Accreditation"
    CAPITAL_CALL = "CapitalCall"
    DISTRIBUTION = "Distribution"
    BANK_LINK = "BankLink"
    TEAM = "Team"
    AUDIT_LOG = "AuditLog"
