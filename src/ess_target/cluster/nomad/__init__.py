from ess_target.cluster.nomad.lifecycle import NomadNodeLifecycleManager, ess_node_id_map

__all__ = ["NomadNodeLifecycleManager", "ess_node_id_map"]
