"""Constants for the Ceph RGW Operator."""

# API Group
API_GROUP = "rgw.ceph.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_PROVIDER = "Provider"
KIND_BUCKET = "Bucket"
KIND_USER = "User"
KIND_BUCKET_LIST = "BucketList"

# Plurals
PLURAL_PROVIDERS = "providers"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "ceph-rgw-operator"

# Provider environment fallbacks
ENV_ENDPOINT = "CEPH_RGW_ENDPOINT"
ENV_ACCESS_KEY = "CEPH_RGW_ACCESS_KEY"
ENV_SECRET_KEY = "CEPH_RGW_SECRET_KEY"
ENV_ZONE = "CEPH_RGW_ZONE"
DEFAULT_ZONE = "default"

# Credentials secret written for User resources
CREDENTIALS_SECRET_SUFFIX = "-credentials"
SECRET_KEY_ACCESS_KEY = "access-key"
SECRET_KEY_SECRET_KEY = "secret-key"

# Policy documents
POLICY_VERSION = "2012-10-17"
S3_ARN_PREFIX = "arn:aws:s3:::"
IAM_USER_ARN_PREFIX = "arn:aws:iam:::user/"

# Condition Types
COND_READY = "Ready"
COND_PROVIDER_NOT_READY = "ProviderNotReady"
COND_AUTH_VALID = "AuthValid"
COND_ENDPOINT_REACHABLE = "EndpointReachable"
COND_CREATION_FAILED = "CreationFailed"
COND_UPDATE_FAILED = "UpdateFailed"
COND_IMMUTABLE_FIELD = "ImmutableFieldViolation"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_SUCCEEDED = "ValidateSucceeded"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_BUCKET_CREATED = "BucketCreated"
EVENT_REASON_BUCKET_UPDATED = "BucketUpdated"
EVENT_REASON_BUCKET_DELETED = "BucketDeleted"
EVENT_REASON_USER_CREATED = "UserCreated"
EVENT_REASON_USER_UPDATED = "UserUpdated"
EVENT_REASON_USER_DELETED = "UserDeleted"
EVENT_REASON_RESOURCE_GONE = "ResourceGone"
