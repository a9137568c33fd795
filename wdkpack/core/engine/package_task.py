"""
Package task — turn a built driver binary into an installable, signed package.

The pipeline is a fixed, ordered, fail-fast sequence. The first failing
step aborts the package and surfaces as a step-specific PackageTaskError:

     1. check the .inx template exists
     2. rename the built .dll to its install extension (.sys / .dll)
     3. copy binary, .pdb, .inx (as .inf) and .map into the package dir
     4. stampinf   — stamp the .inf with date, version, arch (+ framework version)
     5. inf2cat    — generate the .cat catalog
     6. ensure the test certificate (exported / in store only / absent)
     7. copy the .cer into the package dir
     8. signtool sign — binary, then catalog
     9. infverif   — verify the .inf (skipped for samples on buggy WDK builds)
    10. signtool verify — binary, then catalog (only with verify_signature)

The certificate store is process-wide OS state. Packages must be
processed one at a time: a certificate created for one package is what
the next package finds in the store.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from wdkpack.adapters.base import BuildInfoProvider, CommandExecutor, FilesystemProvider
from wdkpack.core.engine.policy import SKIP_INFVERIF_FOR_SAMPLES, WorkaroundPolicy
from wdkpack.core.errors import (
    BuildNumberDetectionFailed,
    CatalogGenerationFailed,
    CertificateExportFailed,
    CertificateGenerationFailed,
    CertificateStoreOutputInvalid,
    CertificateStoreQueryFailed,
    CommandError,
    CopyFailed,
    FileSystemError,
    MissingSourceDescriptor,
    PackageDirectoryCreationFailed,
    SignatureVerificationFailed,
    SigningFailed,
    StampingFailed,
    VerificationFailed,
    WdkBuildNumberError,
)
from wdkpack.core.models.driver import DriverModel
from wdkpack.core.models.paths import PackagePaths

logger = logging.getLogger(__name__)

WDR_TEST_CERT_STORE = "WDRTestCertStore"
WDR_LOCAL_TEST_CERT = "WDRLocalTestCert"
TIMESTAMP_URL = "http://timestamp.digicert.com"
CODE_SIGNING_EKU = "1.3.6.1.5.5.7.3.3"
SAMPLE_CLASS_INFVERIF_FLAG = "/msft"


class CertificateState(Enum):
    EXPORTED = "exported"
    IN_STORE_ONLY = "in-store-only"
    ABSENT = "absent"


def _strip_verbatim_prefix(path: Path) -> str:
    # inf2cat rejects \\?\ prefixed paths
    return str(path).removeprefix("\\\\?\\")


class PackageTask:
    """Low-level driver packaging operations for one package."""

    def __init__(
        self,
        paths: PackagePaths,
        driver_model: DriverModel,
        command_exec: CommandExecutor,
        fs: FilesystemProvider,
        build_info: BuildInfoProvider,
        verify_signature: bool = False,
        sample_class: bool = False,
        cert_store: str = WDR_TEST_CERT_STORE,
        timestamp_url: str = TIMESTAMP_URL,
        sample_policy: WorkaroundPolicy = SKIP_INFVERIF_FOR_SAMPLES,
    ):
        self.paths = paths
        self.driver_model = driver_model
        self.verify_signature = verify_signature
        self.sample_class = sample_class
        self.cert_store = cert_store
        self.timestamp_url = timestamp_url
        self.sample_policy = sample_policy

        self._command_exec = command_exec
        self._fs = fs
        self._build_info = build_info

        logger.debug("Package task paths: %s", paths)
        if not fs.exists(paths.dest_package_dir):
            try:
                fs.create_dir(paths.dest_package_dir)
            except FileSystemError as e:
                raise PackageDirectoryCreationFailed(paths.dest_package_dir) from e

    # ── Entry point ──────────────────────────────────────────────

    def run(self) -> None:
        """Run every packaging step in order, stopping at the first failure."""
        p = self.paths
        self.check_inx_exists()
        logger.info("Copying files to target package folder: %s", p.dest_package_dir)
        self.rename_driver_binary_extension()
        self.copy(p.src_renamed_driver_binary, p.dest_driver_binary)
        self.copy(p.src_pdb, p.dest_pdb)
        self.copy(p.src_inx, p.dest_inf)
        self.copy(p.src_map, p.dest_map)
        self.run_stampinf()
        self.run_inf2cat()
        self.ensure_certificate()
        self.copy(p.src_cert, p.dest_cert)
        self.run_signtool_sign(p.dest_driver_binary)
        self.run_signtool_sign(p.dest_cat)
        self.run_infverif()
        if self.verify_signature:
            logger.info("Verifying signatures for driver binary and cat file using signtool")
            self.run_signtool_verify(p.dest_driver_binary)
            self.run_signtool_verify(p.dest_cat)

    # ── Filesystem steps ─────────────────────────────────────────

    def check_inx_exists(self) -> None:
        logger.debug("Checking for .inx file, path: %s", self.paths.src_inx)
        if not self._fs.exists(self.paths.src_inx):
            raise MissingSourceDescriptor(self.paths.src_inx)

    def rename_driver_binary_extension(self) -> None:
        src = self.paths.src_driver_binary
        dest = self.paths.src_renamed_driver_binary
        logger.debug("Renaming driver binary %s to %s", src.name, dest.name)
        try:
            self._fs.rename(src, dest)
        except FileSystemError as e:
            raise CopyFailed(src, dest, e) from e

    def copy(self, src: Path, dest: Path) -> None:
        logger.debug("Copying src file %s to dest folder %s", src, dest)
        try:
            self._fs.copy(src, dest)
        except FileSystemError as e:
            raise CopyFailed(src, dest, e) from e

    # ── Tool steps ───────────────────────────────────────────────

    def run_stampinf(self) -> None:
        logger.info("Running stampinf command")
        args = [
            "-f",
            str(self.paths.dest_inf),
            "-d",
            "*",
            "-a",
            str(self.paths.arch),
            "-c",
            self.paths.cat_file_name,
            "-v",
            "*",
            *self.driver_model.stampinf_version_args,
        ]
        try:
            self._command_exec.run("stampinf", args)
        except CommandError as e:
            raise StampingFailed(e) from e

    def run_inf2cat(self) -> None:
        logger.info("Running inf2cat command")
        args = [
            f"/driver:{_strip_verbatim_prefix(self.paths.dest_package_dir)}",
            f"/os:{self.paths.arch.os_mapping}",
            "/uselocaltime",
        ]
        try:
            self._command_exec.run("inf2cat", args)
        except CommandError as e:
            raise CatalogGenerationFailed(e) from e

    def certificate_state(self) -> CertificateState:
        """Probe where the test certificate currently lives."""
        if self._fs.exists(self.paths.src_cert):
            return CertificateState.EXPORTED
        if self.is_certificate_in_store():
            return CertificateState.IN_STORE_ONLY
        return CertificateState.ABSENT

    def ensure_certificate(self) -> None:
        state = self.certificate_state()
        logger.debug("Test certificate state: %s", state.value)
        if state is CertificateState.IN_STORE_ONLY:
            self.export_certificate_from_store()
        elif state is CertificateState.ABSENT:
            self.create_self_signed_certificate_in_store()

    def is_certificate_in_store(self) -> bool:
        try:
            output = self._command_exec.run("certmgr.exe", ["-s", self.cert_store])
        except CommandError as e:
            raise CertificateStoreQueryFailed(e) from e
        try:
            stdout = output.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CertificateStoreOutputInvalid(e) from e
        return self.paths.cert_name in stdout

    def create_self_signed_certificate_in_store(self) -> None:
        logger.info(
            "Creating self signed certificate in %s store using makecert", self.cert_store
        )
        args = [
            "-r",
            "-pe",
            "-a",
            "SHA256",
            "-eku",
            CODE_SIGNING_EKU,
            "-ss",
            self.cert_store,
            "-n",
            f"CN={self.paths.cert_name}",
            str(self.paths.src_cert),
        ]
        try:
            self._command_exec.run("makecert", args)
        except CommandError as e:
            raise CertificateGenerationFailed(e) from e

    def export_certificate_from_store(self) -> None:
        logger.info("Creating certificate file from %s store using certmgr", self.cert_store)
        args = [
            "-put",
            "-s",
            self.cert_store,
            "-c",
            "-n",
            self.paths.cert_name,
            str(self.paths.src_cert),
        ]
        try:
            self._command_exec.run("certmgr.exe", args)
        except CommandError as e:
            raise CertificateExportFailed(e) from e

    def run_signtool_sign(self, file_path: Path) -> None:
        logger.info("Signing %s using signtool", file_path.name)
        args = [
            "sign",
            "/v",
            "/s",
            self.cert_store,
            "/n",
            self.paths.cert_name,
            "/t",
            self.timestamp_url,
            "/fd",
            "SHA256",
            str(file_path),
        ]
        try:
            self._command_exec.run("signtool", args)
        except CommandError as e:
            raise SigningFailed(e) from e

    def run_signtool_verify(self, file_path: Path) -> None:
        logger.info("Verifying %s using signtool", file_path.name)
        try:
            self._command_exec.run("signtool", ["verify", "/v", "/pa", str(file_path)])
        except CommandError as e:
            raise SignatureVerificationFailed(e) from e

    def run_infverif(self) -> None:
        logger.info("Running infverif command")
        args = ["/v", self.driver_model.infverif_mode_flag]
        if self.sample_class:
            try:
                build_number = self._build_info.detect_build_number()
            except WdkBuildNumberError as e:
                raise BuildNumberDetectionFailed(e) from e
            skip = self.sample_policy.matching_range(build_number)
            if skip is not None:
                logger.info(
                    "Skipping InfVerif for samples class. WDK Build: %d (%s)",
                    build_number,
                    skip.reason,
                )
                return
            args.append(SAMPLE_CLASS_INFVERIF_FLAG)
        args.append(str(self.paths.dest_inf))
        try:
            self._command_exec.run("infverif", args)
        except CommandError as e:
            raise VerificationFailed(e) from e
