"""Transform, output asset and job provisioning.

Fixed-name resources (the transform here, the policies in
content_protection) use the get-or-create pattern: fetch by name, create
only when the service answers not-found. Per-run resources (output asset,
job) are created under freshly generated names.
"""

from typing import Any, Callable, TypeVar

from aws_lambda_powertools import Logger
from azure.core.exceptions import ResourceNotFoundError
from azure.mgmt.media.models import (
    Asset,
    BuiltInStandardEncoderPreset,
    EncoderNamedPreset,
    Job,
    JobInputHttp,
    JobOutputAsset,
    Transform,
    TransformOutput,
)

from ..shared.config import Settings
from ..shared.media_clients import translate_service_errors

logger = Logger(service="provisioning")

T = TypeVar("T")


def get_or_create(
    fetch: Callable[[], T | None],
    create: Callable[[], T],
    kind: str,
    name: str,
) -> T:
    """Return the named resource, creating it only if it does not exist.

    Args:
        fetch: Calls the service's get for the resource
        create: Calls the service's create for the resource
        kind: Resource kind for logs and error messages
        name: Resource name

    Returns:
        The existing resource, or the newly created one

    Raises:
        AuthenticationFailedError: If the credentials were rejected
        ServiceRequestError: If the fetch fails for any reason but not-found
    """
    try:
        with translate_service_errors(f"get {kind}"):
            resource = fetch()
    except ResourceNotFoundError:
        resource = None

    if resource is not None:
        logger.info(f"Using existing {kind}", extra={"name": name})
        return resource

    logger.info(f"Creating {kind}", extra={"name": name})
    with translate_service_errors(f"create {kind}"):
        return create()


def get_or_create_transform(client: Any, settings: Settings) -> Transform:
    """Ensure the encoding transform exists.

    An existing transform with the configured name is assumed to use the
    same preset and is reused as is.
    """
    name = settings.transform_name

    def create() -> Transform:
        preset = BuiltInStandardEncoderPreset(
            preset_name=EncoderNamedPreset.CONTENT_AWARE_ENCODING,
        )
        return client.transforms.create_or_update(
            settings.resource_group,
            settings.account_name,
            name,
            Transform(outputs=[TransformOutput(preset=preset)]),
        )

    return get_or_create(
        fetch=lambda: client.transforms.get(settings.resource_group, settings.account_name, name),
        create=create,
        kind="transform",
        name=name,
    )


def create_output_asset(client: Any, settings: Settings, asset_name: str) -> Asset:
    """Create the asset the job writes its output into."""
    logger.info("Creating output asset", extra={"asset_name": asset_name})
    with translate_service_errors("create output asset"):
        return client.assets.create_or_update(
            settings.resource_group,
            settings.account_name,
            asset_name,
            Asset(),
        )


def get_or_overwrite_output_asset(client: Any, settings: Settings, asset_name: str) -> Asset:
    """Return an existing asset with this name, or create one.

    An existing asset will have its content overwritten by the job; a
    warning is logged because that is rarely what a caller wants.
    """
    try:
        with translate_service_errors("get output asset"):
            asset = client.assets.get(settings.resource_group, settings.account_name, asset_name)
    except ResourceNotFoundError:
        asset = None

    if asset is None:
        return create_output_asset(client, settings, asset_name)

    logger.warning(
        "Output asset already exists and will be overwritten",
        extra={"asset_name": asset_name},
    )
    return asset


def submit_job(
    client: Any,
    settings: Settings,
    output_asset_name: str,
    job_name: str,
) -> Job:
    """Submit an encoding job reading from an HTTPS source.

    Args:
        client: Media Services management client
        settings: Application settings (transform name, input location)
        output_asset_name: Asset receiving the encoded output
        job_name: Unique job name

    Returns:
        The created Job resource
    """
    job_input = JobInputHttp(
        base_uri=settings.input_base_uri,
        files=[settings.input_file_name],
    )
    job = Job(
        input=job_input,
        outputs=[JobOutputAsset(asset_name=output_asset_name)],
    )

    logger.info(
        "Submitting job",
        extra={
            "job_name": job_name,
            "transform_name": settings.transform_name,
            "input": f"{settings.input_base_uri}{settings.input_file_name}",
            "output_asset_name": output_asset_name,
        },
    )

    with translate_service_errors("create job"):
        return client.jobs.create(
            settings.resource_group,
            settings.account_name,
            settings.transform_name,
            job_name,
            job,
        )
