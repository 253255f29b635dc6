import importlib

mod = "typesgen"
class LazyLoader:
    """    
    Lazy loader for the typesgen functions to speed up startup time.    
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, func_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, func_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the functions and their corresponding module paths
_mappings = {
    "generate_types": (f"{mod}.jsontots", "generate_types"),
    "generate_types_batch": (f"{mod}.jsontots", "generate_types_batch"),
    "fetch_samples": (f"{mod}.jsontots", "fetch_samples"),
    "persist_types": (f"{mod}.jsontots", "persist_types"),
    "convert_json_to_typescript": (f"{mod}.jsontots", "convert_json_to_typescript"),
    "infer_shape_from_json": (f"{mod}.shape_inference", "infer_shape_from_json"),
    "name_and_dedup": (f"{mod}.shape_naming", "name_and_dedup"),
    "convert_shapes_to_typescript": (f"{mod}.shapetots", "convert_shapes_to_typescript"),
    "TypeGenOptions": (f"{mod}.shapes", "TypeGenOptions"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
